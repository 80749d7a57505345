from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from soundshare.core.config import get_settings
from soundshare.models.device_token import DevicePlatform
from soundshare.services.background import notification_tasks
from soundshare.services.composer import NotificationPayload
from soundshare.services.dispatcher import DeliveryReport, NotificationDispatcher
from soundshare.tests.utils import (
    RecordingPushProvider,
    auth_headers,
    create_playlist,
    create_user,
    expo_token,
    register_device,
)


@pytest.mark.asyncio
async def test_follow_notifies_every_device_of_the_target(
    client: AsyncClient,
    session: AsyncSession,
    push_provider: RecordingPushProvider,
    dispatcher: NotificationDispatcher,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    alice = await create_user(session, name="Alice", image="https://img.example/alice.png")
    bob = await create_user(session, name="Bob")
    await register_device(session, user_id=bob.id, token=expo_token("phone"), platform=DevicePlatform.IOS)
    await register_device(session, user_id=bob.id, token=expo_token("tablet"), platform=DevicePlatform.ANDROID)

    reports: list[DeliveryReport] = []
    send_to_user = dispatcher.send_to_user

    async def recording_send(user_id: str, payload: NotificationPayload) -> DeliveryReport:
        report = await send_to_user(user_id, payload)
        reports.append(report)
        return report

    monkeypatch.setattr(dispatcher, "send_to_user", recording_send)

    response = await client.post(f"/api/v1/users/{bob.id}/follow", headers=auth_headers(alice))
    await notification_tasks.drain()

    assert response.status_code == 200
    assert response.json() == {"following_id": bob.id, "status": "following"}
    assert len(push_provider.sent) == 2
    assert {message.to for message in push_provider.sent} == {expo_token("phone"), expo_token("tablet")}
    for message in push_provider.sent:
        assert message.title == "New Follower"
        assert message.body == "Alice started following you"
        assert message.data["followerId"] == alice.id
        assert message.data["followerImage"] == "https://img.example/alice.png"

    assert len(reports) == 1
    report = reports[0]
    assert report.user_id == bob.id
    assert report.attempted == 2
    assert report.succeeded == 2
    assert {outcome.platform for outcome in report.outcomes} == {"ios", "android"}


@pytest.mark.asyncio
async def test_follow_edge_cases(
    client: AsyncClient, session: AsyncSession, push_provider: RecordingPushProvider
) -> None:
    alice = await create_user(session, name="Alice")
    bob = await create_user(session, name="Bob")
    await register_device(session, user_id=bob.id, token=expo_token("phone"))
    headers = auth_headers(alice)

    self_follow = await client.post(f"/api/v1/users/{alice.id}/follow", headers=headers)
    assert self_follow.status_code == 400

    ghost = await client.post("/api/v1/users/ghost/follow", headers=headers)
    assert ghost.status_code == 404

    await client.post(f"/api/v1/users/{bob.id}/follow", headers=headers)
    repeat = await client.post(f"/api/v1/users/{bob.id}/follow", headers=headers)
    await notification_tasks.drain()

    assert repeat.json()["status"] == "already_following"
    assert len(push_provider.sent) == 1


@pytest.mark.asyncio
async def test_unfollow_notifies_when_enabled(
    client: AsyncClient, session: AsyncSession, push_provider: RecordingPushProvider
) -> None:
    alice = await create_user(session, name="Alice")
    bob = await create_user(session, name="Bob")
    await register_device(session, user_id=bob.id, token=expo_token("phone"))
    headers = auth_headers(alice)

    not_following = await client.delete(f"/api/v1/users/{bob.id}/follow", headers=headers)
    assert not_following.status_code == 404

    await client.post(f"/api/v1/users/{bob.id}/follow", headers=headers)
    response = await client.delete(f"/api/v1/users/{bob.id}/follow", headers=headers)
    await notification_tasks.drain()

    assert response.json()["status"] == "unfollowed"
    assert sorted(m.body for m in push_provider.sent) == ["Alice started following you", "Alice unfollowed you"]


@pytest.mark.asyncio
async def test_unfollow_notification_can_be_disabled(
    client: AsyncClient,
    session: AsyncSession,
    push_provider: RecordingPushProvider,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    quiet = get_settings().model_copy(update={"notify_on_unfollow": False})
    monkeypatch.setattr("soundshare.api.v1.users.get_settings", lambda: quiet)
    alice = await create_user(session, name="Alice")
    bob = await create_user(session, name="Bob")
    await register_device(session, user_id=bob.id, token=expo_token("phone"))
    headers = auth_headers(alice)

    await client.post(f"/api/v1/users/{bob.id}/follow", headers=headers)
    await client.delete(f"/api/v1/users/{bob.id}/follow", headers=headers)
    await notification_tasks.drain()

    assert [m.title for m in push_provider.sent] == ["New Follower"]


@pytest.mark.asyncio
async def test_playlist_share_end_to_end(
    client: AsyncClient, session: AsyncSession, push_provider: RecordingPushProvider
) -> None:
    alice = await create_user(session, name="Alice")
    bob = await create_user(session, name="Bob")
    await register_device(session, user_id=bob.id, token=expo_token("bob"))
    playlist = await create_playlist(
        session,
        owner=alice,
        name="Roadtrip",
        songs=[("vid-a", "Highway", "The Drivers"), ("vid-b", "Exit 9", "Turnpike")],
    )

    before = await client.get(f"/api/v1/playlists/{playlist.id}", headers=auth_headers(bob))
    assert before.status_code == 404

    sent = await client.post(
        "/api/v1/messages",
        json={"to_user_id": bob.id, "content": "for the drive", "playlist_id": playlist.id},
        headers=auth_headers(alice),
    )
    await notification_tasks.drain()

    assert sent.status_code == 200
    assert sent.json()["playlist"] == {"id": playlist.id, "name": "Roadtrip"}
    assert [(m.title, m.body) for m in push_provider.sent] == [
        ("New Playlist Shared", 'Alice shared "Roadtrip" with you')
    ]
    assert push_provider.sent[0].data["playlistId"] == playlist.id

    shared = await client.get("/api/v1/messages/shared-playlists", headers=auth_headers(bob))
    assert shared.status_code == 200
    entries = shared.json()
    assert len(entries) == 1
    assert entries[0]["sender"]["name"] == "Alice"
    assert entries[0]["content"] == "for the drive"
    assert entries[0]["playlist"]["name"] == "Roadtrip"
    assert [song["title"] for song in entries[0]["songs"]] == ["Highway", "Exit 9"]

    after = await client.get(f"/api/v1/playlists/{playlist.id}", headers=auth_headers(bob))
    assert after.status_code == 200
    assert [song["video_id"] for song in after.json()["songs"]] == ["vid-a", "vid-b"]


@pytest.mark.asyncio
async def test_notification_failure_does_not_fail_the_request(
    client: AsyncClient, session: AsyncSession, push_provider: RecordingPushProvider
) -> None:
    alice = await create_user(session, name="Alice")
    bob = await create_user(session, name="Bob")
    await register_device(session, user_id=bob.id, token=expo_token("bob"))
    push_provider.raise_on_batches = {0}

    response = await client.post(f"/api/v1/users/{bob.id}/follow", headers=auth_headers(alice))
    await notification_tasks.drain()

    assert response.status_code == 200
    assert len(push_provider.batches) == 1
