"""
Security policy mapping and client certificate management.

This module handles:
- Mapping configured policy/mode strings to asyncua security types
- Selecting the server endpoint that advertises the configured pair
- Client certificate generation (self-signed) for secured sessions
"""

import socket
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Type

from asyncua import ua
from asyncua.crypto.cert_gen import setup_self_signed_certificate
from asyncua.crypto.security_policies import (
    SecurityPolicy,
    SecurityPolicyAes128Sha256RsaOaep,
    SecurityPolicyAes256Sha256RsaPss,
    SecurityPolicyBasic256Sha256,
)
from cryptography.x509.oid import ExtendedKeyUsageOID

from ..errors import ConfigurationError
from ..opcua_logging import log_info

SECURITY_POLICY_URI_PREFIX = "http://opcfoundation.org/UA/SecurityPolicy#"


@dataclass(frozen=True)
class SecuritySettings:
    """Resolved security settings handed to the protocol client."""
    policy: Type[SecurityPolicy]
    mode: ua.MessageSecurityMode
    certificate: str
    private_key: str


class ClientCertificateManager:
    """
    Resolves client security settings and owns the client certificate.

    Uses asyncua's native certificate APIs for proper integration.
    """

    # Mapping from config strings to asyncua security policies
    SECURITY_POLICY_MAPPING: dict[str, Optional[Type[SecurityPolicy]]] = {
        "None": None,
        "Basic256Sha256": SecurityPolicyBasic256Sha256,
        "Aes128_Sha256_RsaOaep": SecurityPolicyAes128Sha256RsaOaep,
        "Aes256_Sha256_RsaPss": SecurityPolicyAes256Sha256RsaPss,
    }

    # Mapping from config strings to message security modes
    SECURITY_MODE_MAPPING: dict[str, ua.MessageSecurityMode] = {
        "None": ua.MessageSecurityMode.None_,
        "Sign": ua.MessageSecurityMode.Sign,
        "SignAndEncrypt": ua.MessageSecurityMode.SignAndEncrypt,
    }

    def __init__(self, certs_dir: Path, application_uri: str):
        """
        Initialize certificate manager.

        Args:
            certs_dir: Directory for storing generated certificates
            application_uri: OPC UA application URI for the certificate
        """
        self.certs_dir = Path(certs_dir)
        self.application_uri = application_uri
        self.cert_path = self.certs_dir / "client_cert.pem"
        self.key_path = self.certs_dir / "client_key.pem"

    @classmethod
    def policy_uri(cls, policy: str) -> str:
        """Return the security policy URI for a configured policy name."""
        if policy not in cls.SECURITY_POLICY_MAPPING:
            raise ConfigurationError(f"Unsupported security policy: {policy}")
        return SECURITY_POLICY_URI_PREFIX + policy

    @classmethod
    def security_mode(cls, mode: str) -> ua.MessageSecurityMode:
        """Return the message security mode for a configured mode name."""
        try:
            return cls.SECURITY_MODE_MAPPING[mode]
        except KeyError:
            raise ConfigurationError(f"Unsupported security mode: {mode}")

    @classmethod
    def select_endpoint(
        cls,
        endpoints: list,
        policy: str,
        mode: str
    ) -> ua.EndpointDescription:
        """
        Pick the advertised endpoint matching the configured policy and mode.

        Args:
            endpoints: EndpointDescriptions returned by discovery
            policy: Configured security policy name
            mode: Configured security mode name

        Raises:
            ConfigurationError: If nothing was discovered or nothing matches
        """
        if not endpoints:
            raise ConfigurationError("endpoint discovery returned no endpoints")

        policy_uri = cls.policy_uri(policy)
        security_mode = cls.security_mode(mode)

        for endpoint in endpoints:
            if endpoint.SecurityPolicyUri == policy_uri and endpoint.SecurityMode == security_mode:
                return endpoint

        raise ConfigurationError(
            f"no endpoint advertises security policy '{policy}' with mode '{mode}'"
        )

    async def resolve(
        self,
        policy: str,
        mode: str,
        cert_file: str = "",
        key_file: str = ""
    ) -> Optional[SecuritySettings]:
        """
        Build security settings for a policy/mode pair.

        Returns None for an unsecured session. Configured certificate and
        key files are used as-is; otherwise a self-signed pair is ensured.
        """
        policy_class = self.SECURITY_POLICY_MAPPING.get(policy)
        security_mode = self.security_mode(mode)

        if policy_class is None:
            if security_mode != ua.MessageSecurityMode.None_:
                raise ConfigurationError(f"security mode '{mode}' requires a security policy")
            return None

        if security_mode == ua.MessageSecurityMode.None_:
            raise ConfigurationError(f"security policy '{policy}' requires mode Sign or SignAndEncrypt")

        if cert_file and key_file:
            certificate, private_key = Path(cert_file), Path(key_file)
            if not certificate.exists() or not private_key.exists():
                raise ConfigurationError(
                    f"configured certificate or key not found: {cert_file}, {key_file}"
                )
        else:
            await self.ensure_certificates()
            certificate, private_key = self.cert_path, self.key_path

        return SecuritySettings(
            policy=policy_class,
            mode=security_mode,
            certificate=str(certificate),
            private_key=str(private_key),
        )

    async def ensure_certificates(self) -> None:
        """Ensure client certificates exist, generate if needed."""
        self.certs_dir.mkdir(parents=True, exist_ok=True)

        if self.cert_path.exists() and self.key_path.exists():
            log_info(f"Using existing client certificates from {self.certs_dir}")
            return

        log_info(f"Generating self-signed client certificate in {self.certs_dir}")

        hostname = socket.gethostname()

        await setup_self_signed_certificate(
            key_file=self.key_path,
            cert_file=self.cert_path,
            app_uri=self.application_uri,
            host_name=hostname,
            cert_use=[ExtendedKeyUsageOID.CLIENT_AUTH],
            subject_attrs={
                "countryName": "US",
                "organizationName": "OPC UA Bridge",
                "commonName": "OPC UA Bridge Client",
            }
        )

        log_info(f"Certificate generated: {self.cert_path}")
