"""Unit tests for the presentation gateway contract."""

import logging

import pytest

from formdesk.presentation import NullPresentation, PresentationGateway
from tests.conftest import RecordingPresentation


class TestPresentationGateway:
    """Test the gateway protocol and the headless implementation."""

    def test_implementations_satisfy_protocol(self):
        assert isinstance(NullPresentation(), PresentationGateway)
        assert isinstance(RecordingPresentation(), PresentationGateway)

    def test_object_without_methods_rejected(self):
        assert not isinstance(object(), PresentationGateway)

    @pytest.mark.asyncio
    async def test_null_presentation_cancels_disambiguation(self):
        assert await NullPresentation().show_disambiguation([{"ID": "1"}, {"ID": "2"}]) is None

    def test_null_presentation_logs_errors(self, caplog):
        with caplog.at_level(logging.ERROR, logger="formdesk.presentation"):
            NullPresentation().show_error("save failed: refused")
        assert "save failed: refused" in caplog.text
