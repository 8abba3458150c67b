from unittest.mock import patch

import pytest

import sfcc_cip
from sfcc_cip.auth.authenticators import AccessTokenAuthProvider, ClientCredentialsAuthProvider
from sfcc_cip.exc import RequestError, ServerOperationError, SessionStateError


class TestSession:
    """
    Unit tests for Session functionality
    """

    PACKAGE_NAME = "sfcc_cip"
    DUMMY_CONNECTION_ARGS = {
        "instance": "abcd_prd",
        "access_token": "tok",
    }

    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_open_passes_connection_properties(self, mock_client_class):
        instance = mock_client_class.return_value
        instance.connection_id = "c-1"

        connection = sfcc_cip.connect(
            **self.DUMMY_CONNECTION_ARGS, connection_properties={"user": "me"}
        )

        instance.open_connection.assert_called_once_with({"user": "me"})
        assert connection.get_connection_id() == "c-1"
        assert connection.open

    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_backend_construction(self, mock_client_class):
        sfcc_cip.connect(**self.DUMMY_CONNECTION_ARGS, _server_url="http://localhost:8765")

        args, kwargs = mock_client_class.call_args
        assert args[0] == "abcd_prd"
        assert isinstance(args[1], AccessTokenAuthProvider)
        assert kwargs["server_url"] == "http://localhost:8765"

    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_client_credentials_auth(self, mock_client_class):
        sfcc_cip.connect("abcd_prd", "id", "secret")
        assert isinstance(mock_client_class.call_args[0][1], ClientCredentialsAuthProvider)

    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_close_closes_backend_connection(self, mock_client_class):
        instance = mock_client_class.return_value

        connection = sfcc_cip.connect(**self.DUMMY_CONNECTION_ARGS)
        connection.close()

        instance.close_connection.assert_called_once_with()
        assert not connection.open

    @pytest.mark.parametrize(
        "error",
        [
            SessionStateError("No connection to close."),
            RequestError("HTTP request error: refused"),
            ServerOperationError("Avatica Error: gone"),
            RuntimeError("boom"),
        ],
    )
    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_close_tolerates_errors(self, mock_client_class, error):
        instance = mock_client_class.return_value
        instance.close_connection.side_effect = error

        connection = sfcc_cip.connect(**self.DUMMY_CONNECTION_ARGS)
        connection.close()

        assert not connection.open

    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_close_twice_sends_one_request(self, mock_client_class):
        instance = mock_client_class.return_value

        connection = sfcc_cip.connect(**self.DUMMY_CONNECTION_ARGS)
        connection.close()
        connection.close()

        assert instance.close_connection.call_count == 1

    @patch("%s.client.UnifiedHttpClient" % PACKAGE_NAME)
    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_failed_open_closes_http_client(self, mock_client_class, mock_http_class):
        mock_client_class.return_value.open_connection.side_effect = RequestError("refused")

        with pytest.raises(RequestError):
            sfcc_cip.connect(**self.DUMMY_CONNECTION_ARGS)

        mock_http_class.return_value.close.assert_called_once_with()

    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_context_manager(self, mock_client_class):
        instance = mock_client_class.return_value
        with sfcc_cip.connect(**self.DUMMY_CONNECTION_ARGS) as connection:
            assert connection.open
        instance.close_connection.assert_called_once_with()

    @patch.dict(
        "os.environ",
        {"SFCC_CLIENT_ID": "env-id", "SFCC_CLIENT_SECRET": "env-secret", "SFCC_CIP_INSTANCE": "env_prd"},
    )
    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_connect_falls_back_to_environment(self, mock_client_class):
        sfcc_cip.connect()
        args = mock_client_class.call_args[0]
        assert args[0] == "env_prd"
        assert args[1].token_source.client_id == "env-id"

    @patch.dict("os.environ", {"SFCC_CIP_INSTANCE": "env_prd"}, clear=True)
    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_explicit_credentials_with_instance_from_environment(self, mock_client_class):
        sfcc_cip.connect(client_id="my-id", client_secret="my-secret")
        args = mock_client_class.call_args[0]
        assert args[0] == "env_prd"
        assert args[1].token_source.client_id == "my-id"

    @patch.dict("os.environ", {"SFCC_CIP_INSTANCE": "env_prd"}, clear=True)
    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_access_token_with_instance_from_environment(self, mock_client_class):
        sfcc_cip.connect(access_token="tok")
        assert mock_client_class.call_args[0][0] == "env_prd"

    @patch.dict("os.environ", {}, clear=True)
    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_connect_reports_only_missing_values(self, mock_client_class):
        with pytest.raises(sfcc_cip.ConfigurationError) as excinfo:
            sfcc_cip.connect(client_id="my-id", client_secret="my-secret")
        assert excinfo.value.context["missing"] == ["SFCC_CIP_INSTANCE"]
        mock_client_class.assert_not_called()

    @patch.dict("os.environ", {}, clear=True)
    @patch("%s.session.AvaticaClient" % PACKAGE_NAME)
    def test_connect_without_configuration(self, mock_client_class):
        with pytest.raises(sfcc_cip.ConfigurationError) as excinfo:
            sfcc_cip.connect()
        assert excinfo.value.context["missing"] == [
            "SFCC_CLIENT_ID",
            "SFCC_CLIENT_SECRET",
            "SFCC_CIP_INSTANCE",
        ]
        mock_client_class.assert_not_called()
