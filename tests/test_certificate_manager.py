"""Tests for security policy mapping and endpoint selection."""

import pytest
from asyncua import ua
from asyncua.crypto.security_policies import SecurityPolicyBasic256Sha256

from opcua_bridge.errors import ConfigurationError
from opcua_bridge.security import ClientCertificateManager

from tests.doubles.devices import endpoint_description


class TestMappings:

    def test_policy_uri(self):
        assert ClientCertificateManager.policy_uri("Basic256Sha256") == (
            "http://opcfoundation.org/UA/SecurityPolicy#Basic256Sha256"
        )

    def test_unknown_policy(self):
        with pytest.raises(ConfigurationError):
            ClientCertificateManager.policy_uri("Basic128Rsa15")

    def test_modes(self):
        assert ClientCertificateManager.security_mode("Sign") == ua.MessageSecurityMode.Sign
        with pytest.raises(ConfigurationError):
            ClientCertificateManager.security_mode("Encrypt")


class TestSelectEndpoint:

    ENDPOINTS = [
        endpoint_description(),
        endpoint_description("Basic256Sha256", ua.MessageSecurityMode.Sign),
        endpoint_description("Basic256Sha256", ua.MessageSecurityMode.SignAndEncrypt),
    ]

    def test_matches_policy_and_mode(self):
        selected = ClientCertificateManager.select_endpoint(self.ENDPOINTS, "Basic256Sha256", "SignAndEncrypt")
        assert selected is self.ENDPOINTS[2]

    def test_none(self):
        assert ClientCertificateManager.select_endpoint(self.ENDPOINTS, "None", "None") is self.ENDPOINTS[0]

    def test_no_match(self):
        with pytest.raises(ConfigurationError):
            ClientCertificateManager.select_endpoint(self.ENDPOINTS, "Aes256_Sha256_RsaPss", "Sign")

    def test_nothing_discovered(self):
        with pytest.raises(ConfigurationError):
            ClientCertificateManager.select_endpoint([], "None", "None")


class TestResolve:

    @pytest.mark.asyncio
    async def test_unsecured(self, tmp_path):
        manager = ClientCertificateManager(tmp_path, "urn:test")
        assert await manager.resolve("None", "None") is None
        assert not manager.cert_path.exists()

    @pytest.mark.asyncio
    async def test_mode_without_policy(self, tmp_path):
        manager = ClientCertificateManager(tmp_path, "urn:test")
        with pytest.raises(ConfigurationError):
            await manager.resolve("None", "Sign")

    @pytest.mark.asyncio
    async def test_policy_without_mode(self, tmp_path):
        manager = ClientCertificateManager(tmp_path, "urn:test")
        with pytest.raises(ConfigurationError):
            await manager.resolve("Basic256Sha256", "None")

    @pytest.mark.asyncio
    async def test_configured_files_must_exist(self, tmp_path):
        manager = ClientCertificateManager(tmp_path, "urn:test")
        with pytest.raises(ConfigurationError):
            await manager.resolve(
                "Basic256Sha256", "Sign", str(tmp_path / "c.pem"), str(tmp_path / "k.pem")
            )

    @pytest.mark.asyncio
    async def test_configured_files_are_used(self, tmp_path):
        cert, key = tmp_path / "c.pem", tmp_path / "k.pem"
        cert.write_text("cert")
        key.write_text("key")
        manager = ClientCertificateManager(tmp_path / "generated", "urn:test")

        settings = await manager.resolve("Basic256Sha256", "SignAndEncrypt", str(cert), str(key))

        assert settings.policy is SecurityPolicyBasic256Sha256
        assert settings.mode == ua.MessageSecurityMode.SignAndEncrypt
        assert settings.certificate == str(cert)
        assert not (tmp_path / "generated").exists()

    @pytest.mark.asyncio
    async def test_self_signed_certificate_generated(self, tmp_path):
        manager = ClientCertificateManager(tmp_path, "urn:test")

        settings = await manager.resolve("Basic256Sha256", "Sign")

        assert manager.cert_path.exists()
        assert manager.key_path.exists()
        assert settings.private_key == str(manager.key_path)
