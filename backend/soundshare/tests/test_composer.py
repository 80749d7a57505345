from __future__ import annotations

import datetime as dt

from soundshare.services.composer import (
    Actor,
    NotificationCategory,
    compose_follow,
    compose_generic,
    compose_message,
    compose_playlist_comment,
    compose_playlist_like,
    compose_unfollow,
    truncate_comment,
)

ALICE = Actor(id="u-alice", name="Alice", image="https://img.example/alice.png")
BOB = Actor(id="u-bob", name="Bob")


def test_follow_payload() -> None:
    payload = compose_follow(ALICE)

    assert payload.category is NotificationCategory.FOLLOW
    assert payload.title == "New Follower"
    assert payload.body == "Alice started following you"
    assert payload.data == {
        "type": "follow",
        "followerId": "u-alice",
        "followerName": "Alice",
        "followerImage": "https://img.example/alice.png",
    }


def test_unfollow_payload() -> None:
    payload = compose_unfollow(BOB)

    assert payload.title == "User Unfollowed"
    assert payload.body == "Bob unfollowed you"
    assert payload.data["type"] == "unfollow"


def test_plain_message_payload() -> None:
    sent_at = dt.datetime(2024, 5, 1, 12, 0, tzinfo=dt.timezone.utc)
    payload = compose_message(ALICE, "see you at eight", sent_at=sent_at)

    assert payload.category is NotificationCategory.MESSAGE
    assert payload.title == "New Message"
    assert payload.body == "Alice: see you at eight"
    assert payload.data["messageContent"] == "see you at eight"
    assert payload.data["timestamp"] == "2024-05-01T12:00:00+00:00"
    assert "playlistId" not in payload.data


def test_message_with_playlist_becomes_share() -> None:
    payload = compose_message(ALICE, "for the drive", playlist_id="p-1", playlist_name="Roadtrip")

    assert payload.category is NotificationCategory.PLAYLIST_SHARE
    assert payload.title == "New Playlist Shared"
    assert payload.body == 'Alice shared "Roadtrip" with you'
    assert payload.data["playlistId"] == "p-1"
    assert payload.data["playlistName"] == "Roadtrip"
    assert payload.data["type"] == "message"


def test_like_by_owner_is_suppressed() -> None:
    assert compose_playlist_like(ALICE, owner_id=ALICE.id, playlist_id="p-1", playlist_name="Mix") is None

    payload = compose_playlist_like(BOB, owner_id=ALICE.id, playlist_id="p-1", playlist_name="Mix")
    assert payload is not None
    assert payload.title == "Playlist Liked"
    assert payload.body == 'Bob liked your playlist "Mix"'
    assert payload.data["likerId"] == "u-bob"


def test_comment_preview_is_truncated_but_data_keeps_full_text() -> None:
    comment = "x" * 60
    payload = compose_playlist_comment(
        BOB, owner_id=ALICE.id, playlist_id="p-1", playlist_name="Mix", comment=comment
    )

    assert payload is not None
    assert payload.title == "New Comment"
    assert payload.body == f'Bob commented on "Mix": "{"x" * 50}..."'
    assert payload.data["commentContent"] == comment
    assert compose_playlist_comment(
        ALICE, owner_id=ALICE.id, playlist_id="p-1", playlist_name="Mix", comment="mine"
    ) is None


def test_truncate_comment_boundary() -> None:
    assert truncate_comment("a" * 50) == "a" * 50
    assert truncate_comment("a" * 51) == "a" * 50 + "..."


def test_generic_payload_merges_sender_fields() -> None:
    payload = compose_generic(ALICE, title="Hello", body="World", data={"screen": "inbox", "senderId": "spoofed"})

    assert payload.category is NotificationCategory.GENERIC
    assert payload.data["screen"] == "inbox"
    assert payload.data["senderId"] == "u-alice"
    assert payload.data["senderName"] == "Alice"
    assert payload.as_dict()["category"] == "generic"
