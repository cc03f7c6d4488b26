"""参数白名单 schema(pydantic)."""
