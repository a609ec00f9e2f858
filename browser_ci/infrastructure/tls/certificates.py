"""
Self-Signed Certificates for the Static HTTPS Server
=====================================================

Browsers only enable SharedArrayBuffer and friends on secure origins, so the
test suite is served over HTTPS even on localhost. A fresh certificate is
generated for every run; sessions accept it through `acceptSslCerts`.
"""

import datetime
import logging
import tempfile
from dataclasses import dataclass
from ipaddress import ip_address
from pathlib import Path
from typing import Optional, Sequence

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

logger = logging.getLogger(__name__)

VALIDITY_DAYS = 7


@dataclass(frozen=True)
class CertificatePair:
    certfile: Path
    keyfile: Path


def _subject_alt_names(hostnames: Sequence[str]) -> x509.SubjectAlternativeName:
    entries = []
    for name in hostnames:
        try:
            entries.append(x509.IPAddress(ip_address(name)))
        except ValueError:
            entries.append(x509.DNSName(name))
    return x509.SubjectAlternativeName(entries)


def generate_self_signed(
    hostnames: Sequence[str],
    directory: Optional[Path] = None,
) -> CertificatePair:
    """
    Write a PEM certificate and private key valid for `hostnames`.
    Files go to a new temporary directory unless one is given.
    """
    if not hostnames:
        raise ValueError("At least one hostname is required")

    logger.info(f"Generating self-signed certificate for {', '.join(hostnames)}")
    target = Path(directory) if directory else Path(tempfile.mkdtemp(prefix="browser-ci-tls-"))
    target.mkdir(parents=True, exist_ok=True)

    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, hostnames[0])])
    now = datetime.datetime.now(datetime.timezone.utc)

    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(minutes=5))
        .not_valid_after(now + datetime.timedelta(days=VALIDITY_DAYS))
        .add_extension(_subject_alt_names(hostnames), critical=False)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .sign(key, hashes.SHA256())
    )

    certfile = target / "cert.pem"
    keyfile = target / "key.pem"
    certfile.write_bytes(certificate.public_bytes(serialization.Encoding.PEM))
    keyfile.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    keyfile.chmod(0o600)

    return CertificatePair(certfile=certfile, keyfile=keyfile)
