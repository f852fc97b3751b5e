"""Cross-examination history compaction."""
from report_buddy.services.court_prep_service import (
    COMPACTION_HEADER,
    COMPACTION_THRESHOLD,
    RECENT_TURNS_KEPT,
    compact_history,
)


def _history(n, text="turn"):
    roles = ("assistant", "user")
    return [{"role": roles[i % 2], "content": f"{text} {i}"} for i in range(n)]


def test_short_history_passes_through():
    history = _history(COMPACTION_THRESHOLD)
    assert compact_history(history) == history


def test_long_history_keeps_recent_turns_verbatim():
    history = _history(COMPACTION_THRESHOLD + 1)
    compacted = compact_history(history)

    assert len(compacted) == RECENT_TURNS_KEPT + 1
    assert compacted[0]["role"] == "system"
    assert compacted[0]["content"].startswith(COMPACTION_HEADER)
    assert compacted[1:] == history[-RECENT_TURNS_KEPT:]


def test_summary_labels_and_truncates():
    history = _history(COMPACTION_THRESHOLD + 1)
    history[0]["content"] = "x" * 400
    summary = compact_history(history)[0]["content"]

    assert "Defense Attorney: " + "x" * 300 + "...\n" in summary
    assert "Officer: turn 1\n" in summary
    assert "turn 21" not in summary


def test_input_is_not_modified():
    history = _history(40)
    snapshot = [dict(m) for m in history]
    compact_history(history)
    assert history == snapshot
