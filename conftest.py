import os
import pytest


@pytest.fixture(scope="session")
def instance():
    return os.getenv("SFCC_CIP_INSTANCE")


@pytest.fixture(scope="session")
def client_id():
    return os.getenv("SFCC_CLIENT_ID")


@pytest.fixture(scope="session")
def client_secret():
    return os.getenv("SFCC_CLIENT_SECRET")


@pytest.fixture(scope="session")
def site_id():
    return os.getenv("SFCC_SITE_ID", "RefArch")


@pytest.fixture(scope="session")
def connection_details(instance, client_id, client_secret, site_id):
    return {
        "instance": instance,
        "client_id": client_id,
        "client_secret": client_secret,
        "site_id": site_id,
    }
