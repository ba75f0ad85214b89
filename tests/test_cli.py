"""Tests for the terminal notification channel and storefront registry."""

import pytest

from shopx.core.config import Config
from shopx.local.cli import TerminalChannel
from shopx.storefronts import create_page_automation


@pytest.mark.asyncio
async def test_terminal_options_resolve_through_mailbox(tmp_path, capsys):
    prompts = []

    def read_line(prompt):
        prompts.append(prompt)
        return "  the second one \n"

    channel = TerminalChannel(tmp_path, read_line=read_line)

    answer = await channel.send_options(["White crew tee", "Organic tee"])

    assert answer == "the second one"
    assert prompts == ["Your choice: "]
    assert not channel.mailbox.pending
    out = capsys.readouterr().out
    assert "1. White crew tee" in out
    assert "2. Organic tee" in out


@pytest.mark.asyncio
async def test_terminal_saves_screenshot(tmp_path):
    channel = TerminalChannel(tmp_path / "shots")

    await channel.send_image(b"\x89PNG")

    [path] = channel.saved_images
    assert path.parent == tmp_path / "shots"
    assert path.read_bytes() == b"\x89PNG"


@pytest.mark.asyncio
async def test_terminal_message_with_details(tmp_path, capsys):
    await TerminalChannel(tmp_path).send_message("Selected Tee", ["Hanes", "$12.00"])

    out = capsys.readouterr().out
    assert "Agent: Selected Tee" in out
    assert "   - Hanes" in out


def test_registry_builds_configured_backend():
    config = Config()
    page = create_page_automation(config, headless=True)

    assert type(page).__name__ == "ShopAppPage"
    assert page.checkout_identifiers == config.storefront.checkout_identifiers
    assert page.product_path_pattern == config.storefront.product_path_pattern


def test_registry_rejects_unknown_backend():
    with pytest.raises(ValueError, match="Unknown storefront"):
        create_page_automation(Config(), name="nope")
