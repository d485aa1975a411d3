import pytest

from fabricfair.security.passwords import hash_password, verify_password


@pytest.mark.unit
class TestPasswords:
    def test_hash_is_salted(self) -> None:
        first = hash_password("secret", rounds=4)
        second = hash_password("secret", rounds=4)
        assert first != second
        assert first.startswith("$2")

    def test_verify_matches(self) -> None:
        hashed = hash_password("secret", rounds=4)
        assert verify_password("secret", hashed) is True
        assert verify_password("Secret", hashed) is False

    def test_missing_hash_never_matches(self) -> None:
        assert verify_password("fabricfair-dummy", None) is False

    def test_malformed_hash_never_matches(self) -> None:
        assert verify_password("secret", "not-a-bcrypt-hash") is False
