from parsers.json_parser import parse_contract, parse_contract_json
from parsers.llm_parser import LlmGateway, LlmGatewayError, compose_prompt, extract_schema

__all__ = [
    "parse_contract",
    "parse_contract_json",
    "LlmGateway",
    "LlmGatewayError",
    "compose_prompt",
    "extract_schema",
]
