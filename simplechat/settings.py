"""Shared connection settings and the chat's character-shift cipher."""

SERVER_HOST = "localhost"
SERVER_PORT = 8080
ENCRYPTION_KEY = 3

_MAX_CODE_POINT = 0x10FFFF
_SURROGATES = range(0xD800, 0xE000)
_REPLACEMENT = "\ufffd"


def _shift(text: str, offset: int) -> str:
    def shifted(char: str) -> str:
        code = ord(char) + offset
        if code < 0 or code > _MAX_CODE_POINT or code in _SURROGATES:
            return _REPLACEMENT
        return chr(code)

    return "".join(shifted(char) for char in text)


def simple_encrypt(text: str) -> str:
    """Shift every character of ``text`` forward by the encryption key."""
    return _shift(text, ENCRYPTION_KEY)


def simple_decrypt(encrypted_text: str) -> str:
    """Shift every character of ``encrypted_text`` back by the encryption key."""
    return _shift(encrypted_text, -ENCRYPTION_KEY)