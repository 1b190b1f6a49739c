"""Tests for the terminal command handling."""

import pytest

from worldsmith.agent.agent_loop import handle_command
from worldsmith.agent.turn_controller import TurnController


@pytest.mark.asyncio
async def test_reset_without_engine_prints_error(world, test_settings, capsys) -> None:
    controller = TurnController(world=world, config=test_settings)
    await handle_command(controller, "/reset")

    assert "No engine is loaded" in capsys.readouterr().out
    assert controller.engine is None


@pytest.mark.asyncio
async def test_temp_command_sets_temperature(world, test_settings, capsys) -> None:
    controller = TurnController(world=world, config=test_settings)
    await handle_command(controller, "/temp 1.3")
    assert controller.temperature == 1.3
    assert "Temperature set to 1.3" in capsys.readouterr().out

    await handle_command(controller, "/temp warm")
    assert "Usage: /temp <float>" in capsys.readouterr().out
