"""
Unit tests for the console presenter and command dispatch.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from chat_cli import ConsolePresenter, dispatch, main
from history import Turn
from session import VIEWS, InvalidTransition, State, TurnLines


@pytest.fixture
def output():
    return []


@pytest.fixture
def presenter(output):
    return ConsolePresenter(out=output.append)


@pytest.fixture
def session():
    mock = MagicMock()
    mock.connect = AsyncMock(return_value=True)
    mock.start_mic = AsyncMock(return_value=True)
    mock.translate = AsyncMock(return_value=None)
    mock.disconnect = AsyncMock()
    mock.mode = "natural"
    mock.speak_enabled = True
    return mock


class TestConsolePresenter:

    def test_render_lists_enabled_controls(self, presenter, output):
        presenter.render(VIEWS[State.MIC_ON])
        assert output == ["Status: Connected | Mic: On | available: translate"]

    def test_show_lines(self, presenter, output):
        presenter.show_lines(TurnLines("[EN] Hello", "[ES] Hola", "[EN] Anything else?", "[ES] ¿Algo más?"))
        assert output == ["You", "  [EN] Hello", "  [ES] Hola",
                          "Chatbot", "  [EN] Anything else?", "  [ES] ¿Algo más?"]

    def test_history_newest_first(self, presenter, output):
        presenter.show_history([Turn("[EN] one", "[ES] uno", "", ""), Turn("[EN] two", "[ES] dos", "", "")])
        presenter.print_history()
        assert output[0].startswith("You: [EN] two")

    def test_alert(self, presenter, output):
        presenter.alert("Microphone permission is required.")
        assert output == ["!! Microphone permission is required."]


class TestDispatch:

    @pytest.mark.asyncio
    async def test_connect(self, session, presenter):
        presenter.render(VIEWS[State.DISCONNECTED])
        assert await dispatch(session, presenter, "connect") is True
        session.connect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_disabled_command_is_refused(self, session, presenter, output):
        presenter.render(VIEWS[State.DISCONNECTED])
        await dispatch(session, presenter, "translate")
        session.translate.assert_not_awaited()
        assert "not available" in output[-1]

    @pytest.mark.asyncio
    async def test_mode_and_speak(self, session, presenter):
        presenter.render(VIEWS[State.CONNECTED_IDLE])
        await dispatch(session, presenter, "mode literal")
        await dispatch(session, presenter, "speak off")
        session.set_mode.assert_called_once_with("literal")
        session.set_speak_enabled.assert_called_once_with(False)

    @pytest.mark.asyncio
    async def test_bad_mode_argument(self, session, presenter, output):
        presenter.render(VIEWS[State.CONNECTED_IDLE])
        await dispatch(session, presenter, "mode poetic")
        session.set_mode.assert_not_called()
        assert "natural" in output[-1]

    @pytest.mark.asyncio
    async def test_invalid_transition_is_reported(self, session, presenter, output):
        presenter.render(VIEWS[State.CONNECTED_IDLE])
        session.start_mic.side_effect = InvalidTransition("start_mic is not allowed while MIC_ON")
        await dispatch(session, presenter, "mic")
        assert output[-1] == "start_mic is not allowed while MIC_ON"

    @pytest.mark.asyncio
    async def test_quit_and_blank(self, session, presenter):
        assert await dispatch(session, presenter, "") is True
        assert await dispatch(session, presenter, "quit") is False

    @pytest.mark.asyncio
    async def test_unknown_command(self, session, presenter, output):
        await dispatch(session, presenter, "dance")
        assert "Unknown command" in output[-1]


class TestMain:

    def test_rejects_unknown_mode(self):
        with pytest.raises(SystemExit):
            main(["--mode", "poetic"])
