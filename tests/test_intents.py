"""Unit tests for OCR landmark matching and assistant reply parsing."""

from wayguide.navigator.intents import match_landmark_text, parse_assistant_reply


def test_exact_landmark_match_ignores_noise(library_graph):
    node = match_landmark_text(["ab", "  main entrance "], library_graph)
    assert node.id == "entrance"


def test_partial_landmark_match_needs_five_characters(library_graph):
    assert match_landmark_text(["LIBRARY"], library_graph).id == "library"
    assert match_landmark_text(["LAB"], library_graph) is None
    assert match_landmark_text(["EXIT 4"], library_graph) is None


def test_first_matching_block_wins(library_graph):
    assert match_landmark_text(["Cafe", "Central Library"], library_graph).id == "cafe"


def test_reply_with_destination():
    reply = parse_assistant_reply("Sure, I can take you there.\nNAVIGATE_TO: [Central Library]")
    assert reply.speech == "Sure, I can take you there."
    assert reply.destination == "Central Library"


def test_reply_with_quoted_destination():
    assert parse_assistant_reply('NAVIGATE_TO: "Cafe"\nEnjoy!').destination == "Cafe"


def test_reply_without_destination():
    reply = parse_assistant_reply("  The library opens at nine.  ")
    assert reply.speech == "The library opens at nine."
    assert reply.destination is None


def test_reply_with_empty_destination():
    assert parse_assistant_reply("NAVIGATE_TO: []").destination is None
