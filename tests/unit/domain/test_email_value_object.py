import pytest

from src.domain.value_objects.email import Email

class TestEmail:
    def test_normalizes_case_and_whitespace(self):
        assert Email("  John.Doe@Example.COM ").value == "john.doe@example.com"

    def test_equal_after_normalization(self):
        assert Email("User@Example.com") == Email("user@example.com")

    @pytest.mark.parametrize(
        "raw",
        ["", "   ", "no-at-sign", "user@", "@example.com", "user@example", "a b@example.com"],
    )
    def test_rejects_malformed_addresses(self, raw):
        with pytest.raises(ValueError, match="Valid email is required"):
            Email(raw)

    def test_rejects_overlong_address(self):
        local = "a" * 250
        with pytest.raises(ValueError):
            Email(f"{local}@example.com")

    def test_rejects_non_string(self):
        with pytest.raises(TypeError):
            Email(None)  # type: ignore[arg-type]

    def test_str_is_the_normalized_value(self):
        assert str(Email(" Someone@Mail.Example.org")) == "someone@mail.example.org"
