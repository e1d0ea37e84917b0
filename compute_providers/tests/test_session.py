"""Tests for vSphere session handling."""

import ssl

import pytest

from compute_providers.base import ProviderCredential
from compute_providers.contrib.vsphere import session
from compute_providers.errors import ConfigurationError

DEFAULTS = {"VSPHERE_HOST": "", "VSPHERE_PORT": 443, "VSPHERE_VALIDATE_CERTS": False}


class TestResolveEndpoint:
    def test_credential_wins(self):
        credential = ProviderCredential(hostname="vc01", port=8443)
        settings = dict(DEFAULTS, VSPHERE_HOST="fallback", VSPHERE_PORT=443)
        assert session.resolve_endpoint(credential, settings) == ("vc01", 8443)

    def test_settings_fallback(self):
        settings = dict(DEFAULTS, VSPHERE_HOST="vcenter.default", VSPHERE_PORT="9443")
        assert session.resolve_endpoint(ProviderCredential(), settings) == ("vcenter.default", 9443)

    def test_no_endpoint(self):
        with pytest.raises(ConfigurationError, match="VSPHERE_HOST"):
            session.resolve_endpoint(ProviderCredential(), DEFAULTS)


class TestConnect:
    def test_unverified_tls_by_default(self, vsphere, credential):
        session.connect(credential, DEFAULTS)

        kwargs = vsphere.SmartConnect.call_args.kwargs
        assert kwargs["host"] == "vcenter.test"
        assert kwargs["port"] == 443
        assert (kwargs["user"], kwargs["pwd"]) == ("admin", "secret")
        assert kwargs["sslContext"].verify_mode == ssl.CERT_NONE
        assert kwargs["sslContext"].check_hostname is False

    def test_validate_certs_setting(self, vsphere, credential):
        session.connect(credential, dict(DEFAULTS, VSPHERE_VALIDATE_CERTS=True))
        assert "sslContext" not in vsphere.SmartConnect.call_args.kwargs

    def test_credential_overrides_validate_certs(self, vsphere):
        credential = ProviderCredential(
            username="admin", hostname="vc01", extra={"validate_certs": True},
        )
        session.connect(credential, DEFAULTS)
        assert "sslContext" not in vsphere.SmartConnect.call_args.kwargs

    def test_connect_errors_propagate(self, vsphere, credential):
        vsphere.SmartConnect.side_effect = ConnectionRefusedError("refused")
        with pytest.raises(ConnectionRefusedError):
            session.connect(credential, DEFAULTS)


class TestOpenSession:
    def test_yields_content_and_disconnects(self, vsphere, credential):
        with session.open_session(credential, DEFAULTS) as content:
            assert content is vsphere.inventory.content
            vsphere.Disconnect.assert_not_called()

        vsphere.Disconnect.assert_called_once_with(vsphere.service_instance)

    def test_disconnects_on_error(self, vsphere, credential):
        with pytest.raises(RuntimeError):
            with session.open_session(credential, DEFAULTS):
                raise RuntimeError("boom")

        vsphere.Disconnect.assert_called_once_with(vsphere.service_instance)

    def test_disconnect_failure_is_logged_not_raised(self, vsphere, credential, caplog):
        vsphere.Disconnect.side_effect = OSError("socket closed")

        with session.open_session(credential, DEFAULTS):
            pass

        assert "Error disconnecting" in caplog.text

    def test_no_connection_no_disconnect(self, vsphere):
        with pytest.raises(ConfigurationError):
            with session.open_session(ProviderCredential(), DEFAULTS):
                pass

        vsphere.SmartConnect.assert_not_called()
        vsphere.Disconnect.assert_not_called()
