"""Unit tests for QuickActionManager."""

import asyncio

import pytest

from talk2ai.ai.responder import AIResponder
from talk2ai.errors import DuplicateLabelError
from talk2ai.models.quick_action import QuickAction
from talk2ai.quick_actions.manager import QuickActionManager, DEFAULT_QUICK_ACTIONS
from talk2ai.storage.file_manager import FileManager


@pytest.mark.unit
class TestQuickActionManager:
    """Test cases for QuickActionManager class."""

    def test_defaults_seeded_once(self, temp_data_dir, fake_ai):
        """Test defaults seeded once."""
        manager = QuickActionManager(AIResponder(fake_ai), FileManager(temp_data_dir))
        manager.load()

        assert [a.label for a in manager.list()] == [label for label, _ in DEFAULT_QUICK_ACTIONS]

        manager.remove(manager.list()[0].id)
        reloaded = QuickActionManager(AIResponder(fake_ai), FileManager(temp_data_dir))
        reloaded.load()
        assert len(reloaded.list()) == len(DEFAULT_QUICK_ACTIONS) - 1

    def test_add_and_get(self, fake_ai):
        """Test add and get."""
        manager = QuickActionManager(AIResponder(fake_ai))
        action = manager.add(QuickAction(label="Translate", prompt_template="Translate: {{TEXT}}"))

        assert manager.get(action.id) is action

    def test_duplicate_label_rejected(self, fake_ai):
        """Test duplicate label rejected."""
        manager = QuickActionManager(AIResponder(fake_ai))
        manager.add(QuickAction(label="Translate", prompt_template="a"))

        with pytest.raises(DuplicateLabelError):
            manager.add(QuickAction(label="Translate", prompt_template="b"))

        # Labels differing only in case are distinct
        manager.add(QuickAction(label="translate", prompt_template="c"))
        assert len(manager.list()) == 2

    def test_remove_is_idempotent(self, fake_ai):
        """Test remove is idempotent."""
        manager = QuickActionManager(AIResponder(fake_ai))
        action = manager.add(QuickAction(label="X", prompt_template="x"))

        manager.remove(action.id)
        manager.remove(action.id)

        assert manager.list() == []

    def test_managing_flag(self, fake_ai):
        """Test managing flag."""
        manager = QuickActionManager(AIResponder(fake_ai))

        manager.set_managing(True)

        assert manager.is_managing is True

    def test_render_with_placeholder(self):
        """Test render with placeholder."""
        action = QuickAction(label="T", prompt_template="Translate to French: {{TEXT}}")

        assert QuickActionManager.render(action, " good morning ") == "Translate to French: good morning"

    def test_render_appends_quoted_text(self):
        """Test render appends quoted text."""
        action = QuickAction(label="F", prompt_template="Fact-check this:")

        assert QuickActionManager.render(action, "line one\nline two") == \
            "Fact-check this:\n\n> line one\n> line two"
        assert QuickActionManager.render(action, None) == "Fact-check this:"

    def test_dispatch(self, fake_ai):
        """Test dispatch."""
        manager = QuickActionManager(AIResponder(fake_ai))
        action = manager.add(QuickAction(label="Recap", prompt_template="Recap: {{TEXT}}"))

        response = asyncio.run(manager.dispatch(action.id, "we agreed on Friday", system_prompt="Be brief."))

        assert response == "reply to: Recap: we agreed on Friday"
        assert fake_ai.calls[0]["system_text"] == "Be brief."

    def test_dispatch_unknown_action(self, fake_ai):
        """Test dispatch unknown action."""
        manager = QuickActionManager(AIResponder(fake_ai))

        with pytest.raises(KeyError):
            asyncio.run(manager.dispatch("missing", "text"))
