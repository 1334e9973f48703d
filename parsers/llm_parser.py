# parsers/llm_parser.py
# Composes the generation prompts and asks the LLM gateway for a contract draft.

import json
import sys
from typing import Any, Optional

import httpx
from langchain_core.prompts import ChatPromptTemplate

from config import GatewaySettings
from utils import extract_json_object

# Prepended to the user's project description when there is no contract yet.
FIRST_PROMPT_PRE = """
I'm going to ask you to generate a Dash Platform data contract after giving you some context and rules.

*Background info*:
Dash Platform is a blockchain for decentralized applications that are backed by data contracts.
Data contracts are JSON schemas that are meant to define the structures of data an application can store.
They must define at least one document type, where a document type defines a type of document that can be submitted to a data contract.

*Example*:
Here is an example of a data contract with one document type, "nft":

{"nft":{"type":"object","properties":{"name":{"type":"string","description":"Name of the NFT token","maxLength":63},"description":{"type":"string","description":"Description of the NFT token","maxLength":256},"imageUrl":{"type":"string","description":"URL of the image associated with the NFT token","maxLength":2048,"format":"uri"},"imageHash":{"type":"array","description":"SHA256 hash of the bytes of the image specified by tokenImageUrl","byteArray":true,"minItems":32,"maxItems":32},"imageFingerprint":{"type":"array","description":"dHash the image specified by tokenImageUrl","byteArray":true,"minItems":8,"maxItems":8},"price":{"type":"number","description":"Price of the NFT token in Dash","minimum":0},"quantity":{"type":"integer","description":"Number of tokens in circulation","minimum":0},"metadata":{"type":"array","description":"Any additional metadata associated with the NFT token","byteArray":true,"minItems":0,"maxItems":2048}},"indices":[{"name":"price","properties":[{"price":"asc"}]},{"name":"quantity","properties":[{"quantity":"asc"}]},{"name":"priceAndQuantity","properties":[{"price":"asc"},{"quantity":"asc"}]}],"required":["name","price","quantity"],"additionalProperties":false}}

While this example data contract only has one document type, data contracts should usually have more than one. For example, the example "nft" data contract could also have document types for "listing" and "transaction". Maybe the developer also wants to have user profiles, so they could include a "userProfile" document type.

*Requirements*:
The following requirements must be met in Dash Platform data contracts:
 - Indexes may only have "asc" sort order.
 - All "string" properties that are used in indexes must specify "maxLength", which must be no more than 63.
 - All "array" properties that are used in indexes must specify "maxItems", and it must be less than or equal to 255.
 - All "array" properties must specify `"byteArray": true`.
 - All "object" properties must define at least 1 property within themselves.

*App description*:
Now I will give you a user prompt that describes the application that you will generate a data contract for.

When creating the data contract, please:
 - Include descriptions for every document type and property. Be creative, extensive, and utilize multiple document types if possible.
 - Include indexes for any properties that it makes sense for a useful app to index. More is better.
 - Do not explain anything or return anything else other than a properly formatted data contract JSON schema.
 - Double check that all requirements and requests above are met. Again, all "array" properties must specify `"byteArray": true`.

App description:

"""

# Prepended to every later request; the current contract and then the requested changes follow it.
SECOND_PROMPT_PRE = """
I'm going to ask you to make some changes to a Dash Platform data contract after giving you some context and rules.

*Requirements*:
The following requirements must be met in Dash Platform data contracts:
 - Indexes may only have "asc" sort order.
 - All "array" properties must specify "byteArray": true.
 - All "string" properties that are used in indexes must specify "maxLength", which must be no more than 63.
 - All "array" properties that are used in indexes must specify "maxItems", and it must be less than or equal to 255.
 - All "object" properties must define at least 1 property within themselves.

*Changes to be made*:
Make the following change(s) to this Dash Platform data contract JSON schema, along with any other changes that are necessary to make it valid according to the rules above.
Note that the highest-level keys in the data contract are called "document types".
Do not explain anything or return anything else other than a properly formatted JSON schema:

"""


def _escape_braces(text: str) -> str:
    return text.replace('{', '{{').replace('}', '}}')


first_prompt = ChatPromptTemplate.from_messages([
    ("human", _escape_braces(FIRST_PROMPT_PRE) + "{user_text}"),
])
amendment_prompt = ChatPromptTemplate.from_messages([
    ("human", _escape_braces(SECOND_PROMPT_PRE) + "{current_schema}\n\n{user_text}"),
])


class LlmGatewayError(Exception):
    """A generation request failed; the message is meant for the user."""


def compose_prompt(current_schema: str, user_text: str) -> str:
    """
    Builds the prompt for one generation request: a fresh-contract prompt when
    there is no current schema, otherwise an amendment of the current one.
    """
    if not current_schema:
        messages = first_prompt.format_messages(user_text=user_text)
    else:
        messages = amendment_prompt.format_messages(current_schema=current_schema, user_text=user_text)
    return messages[0].content


def extract_schema(text: Optional[str]) -> str:
    """Cuts the contract JSON out of a model reply and checks that it parses."""
    candidate = extract_json_object(text)
    if candidate is None:
        raise LlmGatewayError("No valid JSON found in the returned text.")
    try:
        json.loads(candidate)
    except json.JSONDecodeError as e:
        raise LlmGatewayError("Extracted text is not valid JSON.") from e
    return candidate


def _upstream_error_message(body: str) -> str:
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        return body
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return body


def _message_content(data: Any) -> str:
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content if isinstance(content, str) else ""


class LlmGateway:
    """
    Sends a single chat-completion request per call to the configured gateway.
    No retries: a failed request is reported and the user decides what to do.
    """

    def __init__(self, settings: GatewaySettings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def request_body(self, prompt: str) -> dict:
        return {
            "model": self.settings.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.settings.max_tokens,
            "temperature": self.settings.temperature,
        }

    async def generate(self, prompt: str) -> str:
        """Returns the contract JSON text found in the model reply, or raises LlmGatewayError."""
        if not self.settings.url:
            raise LlmGatewayError("LLM gateway URL is not configured. Set DATA_CONTRACT_LLM_URL.")

        print(f"INFO: Sending prompt to LLM gateway ({self.settings.model})...", file=sys.stderr)
        try:
            async with httpx.AsyncClient(timeout=self.settings.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.settings.url,
                    json=self.request_body(prompt),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            raise LlmGatewayError(str(e) or "Fetch request failed") from e

        if not response.is_success:
            message = _upstream_error_message(response.text)
            raise LlmGatewayError(f"HTTP {response.status_code} error from LLM gateway: {message}")

        try:
            data = response.json()
        except ValueError as e:
            raise LlmGatewayError("LLM gateway response is not valid JSON.") from e

        schema = extract_schema(_message_content(data))
        print("INFO: LLM returned a contract draft.", file=sys.stderr)
        return schema
