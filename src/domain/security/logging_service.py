"""Masking helpers for log and audit output.

Reset flows handle emails, client addresses and one-time secrets. Everything
that leaves the process through a logger goes through this service first so
that logs stay useful for correlation without exposing personal data.
Plaintext codes, reset tokens and credential hashes are never passed here;
they are simply never logged.
"""

import hashlib

import structlog

logger = structlog.get_logger(__name__)


class SecureLoggingService:
    """Consistent, non-reversible masking for identifiers that appear in logs."""

    USERNAME_MASK_LENGTH = 2
    IP_MASK_LAST_OCTET = True

    def mask_username(self, username: str) -> str:
        """Masks the local part of an address, keeping a short stable digest.

        The digest lets operators correlate events for the same account
        without being able to read the address back.
        """
        if not username:
            return "[empty]"

        if len(username) <= self.USERNAME_MASK_LENGTH:
            return "*" * len(username)

        digest = hashlib.sha256(username.lower().encode()).hexdigest()[:8]
        return f"{username[:self.USERNAME_MASK_LENGTH]}***{digest}"

    def mask_email(self, email: str) -> str:
        """Apply masking to an email address.

        Args:
            email: Raw email to mask

        Returns:
            str: Consistently masked email
        """
        if not email:
            return "[empty]"

        if "@" not in email:
            return self.mask_username(email)

        local, domain = email.split("@", 1)
        masked_local = self.mask_username(local)

        domain_parts = domain.split(".")
        if len(domain_parts) > 1:
            masked_domain = f"{domain_parts[0][:2]}***.{domain_parts[-1]}"
        else:
            masked_domain = f"{domain[:2]}***"

        return f"{masked_local}@{masked_domain}"

    def mask_ip_address(self, ip_address: str) -> str:
        """Mask the host part of an IPv4 or IPv6 address."""
        if not ip_address:
            return "[unknown]"

        if "." in ip_address and self.IP_MASK_LAST_OCTET:
            parts = ip_address.split(".")
            if len(parts) == 4:
                return f"{parts[0]}.{parts[1]}.{parts[2]}.***"

        return ip_address.rsplit(":", 1)[0] + ":***" if ":" in ip_address else ip_address[:8] + "***"

    def sanitize_user_agent(self, user_agent: str) -> str:
        """Reduce a user agent to its browser family."""
        if not user_agent:
            return "[unknown]"

        # Edge and Chrome both advertise Safari, so order matters
        if "Edg" in user_agent:
            return "Edge/***"
        if "Chrome" in user_agent:
            return "Chrome/***"
        if "Firefox" in user_agent:
            return "Firefox/***"
        if "Safari" in user_agent:
            return "Safari/***"
        return "Unknown/***"


secure_logging_service = SecureLoggingService()
