from src.core.security.jwt import TokenData, create_access_token, decode_token

__all__ = ["TokenData", "create_access_token", "decode_token"]
