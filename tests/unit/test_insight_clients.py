"""Tests for the insight client implementations."""

import io
import json
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, NoCredentialsError

from audiobook_buddy.domain.entities import ConfigurationError, Quiz, Summary, TransientError, ValidationError
from audiobook_buddy.infrastructure.bedrock_insight_client import BedrockInsightClient
from audiobook_buddy.infrastructure.simple_insight_client import SimpleInsightClient

TEXT = (
    "The mitochondria is the powerhouse of the cell. "
    "Photosynthesis happens inside chloroplasts. "
    "Ribosomes assemble proteins from amino acids. "
    "Cells divide through mitosis."
)


class TestSimpleInsightClient:
    """Tests for SimpleInsightClient."""

    @pytest.mark.asyncio
    async def test_summary_is_leading_sentences(self):
        client = SimpleInsightClient(summary_sentences=2)

        response = await client.summarize(TEXT)

        summary = Summary.model_validate(response)
        assert summary.summary == "The mitochondria is the powerhouse of the cell. Photosynthesis happens inside chloroplasts."

    @pytest.mark.asyncio
    async def test_quiz_is_valid(self):
        client = SimpleInsightClient()

        response = await client.generate_quiz(TEXT, 3)

        quiz = Quiz.model_validate(response)
        assert len(quiz.questions) == 3
        first = quiz.questions[0]
        assert first.answer == "mitochondria"
        assert "_____" in first.question
        assert len(set(first.options)) == 4

    @pytest.mark.asyncio
    async def test_quiz_on_tiny_vocabulary_uses_fillers(self):
        client = SimpleInsightClient()

        response = await client.generate_quiz("Bananas.", 1)

        quiz = Quiz.model_validate(response)
        assert quiz.questions[0].answer == "bananas"
        assert "None of these" in quiz.questions[0].options


class TestBedrockInsightClient:
    """Tests for BedrockInsightClient with a mocked bedrock-runtime client."""

    @pytest.fixture
    def bedrock(self):
        with patch("audiobook_buddy.infrastructure.bedrock_insight_client.boto3.client") as mock_client_factory:
            client = MagicMock()
            mock_client_factory.return_value = client
            yield client

    @staticmethod
    def model_output(text: str) -> dict:
        payload = json.dumps({"content": [{"type": "text", "text": text}]}).encode()
        return {"body": io.BytesIO(payload)}

    @pytest.mark.asyncio
    async def test_summarize_parses_json(self, bedrock):
        bedrock.invoke_model.return_value = self.model_output('{"summary": "Cells make energy."}')
        client = BedrockInsightClient(model_id="test-model")

        response = await client.summarize(TEXT)

        assert response == {"summary": "Cells make energy."}
        kwargs = bedrock.invoke_model.call_args.kwargs
        assert kwargs["modelId"] == "test-model"
        body = json.loads(kwargs["body"])
        assert body["anthropic_version"] == "bedrock-2023-05-31"
        assert TEXT in body["messages"][0]["content"][0]["text"]

    @pytest.mark.asyncio
    async def test_code_fences_are_stripped(self, bedrock):
        fenced = '```json\n{"questions": [{"question": "Q?", "options": ["A", "B", "C", "D"], "answer": "A"}]}\n```'
        bedrock.invoke_model.return_value = self.model_output(fenced)
        client = BedrockInsightClient()

        response = await client.generate_quiz(TEXT, 1)

        assert Quiz.model_validate(response).questions[0].answer == "A"
        prompt = json.loads(bedrock.invoke_model.call_args.kwargs["body"])["messages"][0]["content"][0]["text"]
        assert "Generate 1 questions" in prompt

    @pytest.mark.asyncio
    async def test_unparseable_output(self, bedrock):
        bedrock.invoke_model.return_value = self.model_output("Sure! Here is your summary.")
        client = BedrockInsightClient()

        with pytest.raises(ValidationError):
            await client.summarize(TEXT)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, expected",
        [
            (NoCredentialsError(), ConfigurationError),
            (ClientError({"Error": {"Code": "AccessDeniedException"}}, "InvokeModel"), ConfigurationError),
            (ClientError({"Error": {"Code": "ThrottlingException"}}, "InvokeModel"), TransientError),
            (ClientError({"Error": {"Code": "InternalServerException"}}, "InvokeModel"), TransientError),
            (EndpointConnectionError(endpoint_url="https://bedrock"), TransientError),
        ],
    )
    async def test_failures_are_classified(self, bedrock, error, expected):
        bedrock.invoke_model.side_effect = error
        client = BedrockInsightClient()

        with pytest.raises(expected):
            await client.summarize(TEXT)
