from .certificates import CertificatePair, generate_self_signed

__all__ = ["CertificatePair", "generate_self_signed"]
