"""Cryptographically secure code and token generation.

Backed by the ``secrets`` module. Codes are drawn uniformly from the full
range ``[0, 10**length)`` and zero-padded, so every code of the given length
is equally likely (leading zeros included).
"""

import secrets

from src.domain.interfaces.services import IResetCodeGenerator


class SecureCodeGenerator(IResetCodeGenerator):
    def generate_otp(self, length: int) -> str:
        if length < 1:
            raise ValueError("OTP length must be positive")
        return f"{secrets.randbelow(10 ** length):0{length}d}"

    def generate_reset_token(self, num_bytes: int) -> str:
        if num_bytes < 16:
            raise ValueError("Reset tokens need at least 128 bits of entropy")
        return secrets.token_hex(num_bytes)
