"""Amazon Bedrock implementation of the insight client."""

import asyncio
import json
import logging
import re

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from ..domain.entities.errors import ConfigurationError, TransientError, ValidationError
from ..domain.interfaces.insight_client import InsightClient

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = """Summarize the following audiobook chapter. Focus on the key ideas and main points.
Keep the summary concise, ideally 2-4 sentences.

RESPOND IN JSON FORMAT:
{{"summary": "the summary"}}

Return ONLY valid JSON.

Chapter Text:
{text}"""

QUIZ_PROMPT = """You create multiple-choice quizzes from text.
Generate {num_questions} questions from the text below. Each question has exactly 4 options,
and the answer must be exactly one of the options.

RESPOND IN JSON FORMAT:
{{"questions": [{{"question": "...", "options": ["...", "...", "...", "..."], "answer": "..."}}]}}

Return ONLY valid JSON.

Text content:
{text}"""

_CONFIGURATION_CODES = {
    "AccessDeniedException",
    "UnrecognizedClientException",
    "ResourceNotFoundException",
    "ValidationException",
}
_THROTTLING_CODES = {"ThrottlingException", "ServiceQuotaExceededException", "TooManyRequestsException"}
_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


class BedrockInsightClient(InsightClient):
    """Generates summaries and quizzes with an Anthropic model on Bedrock."""

    def __init__(
        self,
        model_id: str = "anthropic.claude-3-5-sonnet-20241022-v2:0",
        region_name: str = "us-east-1",
        max_tokens: int = 2000,
        temperature: float = 0.2,
    ):
        self.model_id = model_id
        self.region_name = region_name
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.bedrock = boto3.client("bedrock-runtime", region_name=region_name)

    async def summarize(self, text: str) -> dict:
        return await self._invoke(SUMMARY_PROMPT.format(text=text))

    async def generate_quiz(self, text: str, num_questions: int) -> dict:
        return await self._invoke(QUIZ_PROMPT.format(text=text, num_questions=num_questions))

    async def _invoke(self, prompt: str) -> dict:
        body = json.dumps(
            {
                "anthropic_version": "bedrock-2023-05-31",
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
                "messages": [{"role": "user", "content": [{"type": "text", "text": prompt}]}],
            }
        )
        try:
            response = await asyncio.to_thread(self.bedrock.invoke_model, modelId=self.model_id, body=body)
            result = json.loads(response["body"].read())
        except NoCredentialsError as e:
            raise ConfigurationError("AWS credentials are not configured for the AI service.") from e
        except ClientError as e:
            raise self._classify(e) from e
        except BotoCoreError as e:
            logger.error(f"Bedrock request failed: {e}")
            raise TransientError("Network error: Could not connect to the AI service.") from e

        return self._parse(result)

    def _classify(self, error: ClientError) -> Exception:
        code = error.response.get("Error", {}).get("Code", "")
        logger.error(f"Bedrock invoke_model failed with {code}: {error}")
        if code in _CONFIGURATION_CODES:
            return ConfigurationError(f"The AI service is not configured correctly ({code}).")
        if code in _THROTTLING_CODES:
            return TransientError("API rate limit exceeded. Please wait and try again.")
        return TransientError("The AI service failed to respond. Please try again.")

    @staticmethod
    def _parse(result: dict) -> dict:
        try:
            text = result["content"][0]["text"].strip()
            parsed = json.loads(_FENCE.sub("", text))
        except (KeyError, IndexError, TypeError, json.JSONDecodeError) as e:
            logger.error(f"Unparseable model output: {e}")
            raise ValidationError("The AI returned a response that could not be read.") from e
        if not isinstance(parsed, dict):
            raise ValidationError("The AI returned a response in an unexpected format.")
        return parsed
