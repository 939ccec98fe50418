"""
Unit tests for LlmIntentExtractor against a mocked chat-completions endpoint.
"""

import json

import httpx
import pytest

from gamescout.intent_extractor import IntentExtractionError, LlmIntentExtractor


def chat_reply(content, status=200):
	def handler(request: httpx.Request) -> httpx.Response:
		return httpx.Response(status, json={"choices": [{"message": {"content": content}}]})
	return handler


def make_extractor(handler, api_key="sk-test", project_id=None):
	http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://llm.test/v1/")
	return LlmIntentExtractor(http, api_key, model="gpt-4o-mini", project_id=project_id)


@pytest.mark.asyncio
async def test_parses_json_intent():
	content = json.dumps({"include": ["dragon", "medieval"], "exclude": ["magic"], "titles": ["Skyrim"]})
	extracted = await make_extractor(chat_reply(content)).extract("dragons but no magic")
	assert extracted.include == ["dragon", "medieval"]
	assert extracted.exclude == ["magic"]
	assert extracted.titles == ["Skyrim"]


@pytest.mark.asyncio
async def test_sends_model_auth_and_project_headers():
	seen = {}

	def handler(request: httpx.Request) -> httpx.Response:
		seen["url"] = str(request.url)
		seen["auth"] = request.headers.get("authorization")
		seen["project"] = request.headers.get("openai-project")
		seen["body"] = json.loads(request.content)
		return httpx.Response(200, json={"choices": [{"message": {"content": "{}"}}]})

	await make_extractor(handler, project_id="proj_1").extract("space sim")
	assert seen["url"] == "https://llm.test/v1/chat/completions"
	assert seen["auth"] == "Bearer sk-test"
	assert seen["project"] == "proj_1"
	assert seen["body"]["model"] == "gpt-4o-mini"
	assert seen["body"]["response_format"] == {"type": "json_object"}
	assert seen["body"]["messages"][-1] == {"role": "user", "content": "space sim"}


@pytest.mark.asyncio
async def test_missing_fields_become_none():
	extracted = await make_extractor(chat_reply('{"include": ["horror"]}')).extract("scary")
	assert extracted.include == ["horror"]
	assert extracted.exclude is None
	assert extracted.titles is None


@pytest.mark.asyncio
async def test_code_fenced_json_is_accepted():
	content = '```json\n{"include": ["racing"], "exclude": [], "titles": []}\n```'
	extracted = await make_extractor(chat_reply(content)).extract("fast cars")
	assert extracted.include == ["racing"]


@pytest.mark.asyncio
async def test_missing_api_key_fails_without_calling_out():
	def handler(request):
		raise AssertionError("no request expected")

	with pytest.raises(IntentExtractionError):
		await make_extractor(handler, api_key=None).extract("anything")


@pytest.mark.asyncio
@pytest.mark.parametrize("handler", [
	chat_reply("{}", status=500),
	chat_reply("not json at all"),
	chat_reply(""),
	chat_reply('{"include": "dragon"}'),
	lambda request: httpx.Response(200, json={"choices": []}),
])
async def test_bad_answers_raise_extraction_error(handler):
	with pytest.raises(IntentExtractionError):
		await make_extractor(handler).extract("dragons")


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
	def handler(request):
		raise httpx.ConnectError("refused", request=request)

	with pytest.raises(IntentExtractionError):
		await make_extractor(handler).extract("dragons")
