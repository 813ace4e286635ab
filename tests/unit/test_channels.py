from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from rasputin.adapters.memory import InMemoryBroker
from rasputin.domain.channels import ChannelHandle, ReplyChannelManager
from rasputin.domain.errors import ChannelManagementFailure


def test_names_are_prefixed_and_unique(memory_broker: InMemoryBroker) -> None:
    manager = ReplyChannelManager(memory_broker, prefix="tmp-reply-")

    names = {manager.new_name() for _ in range(200)}

    assert len(names) == 200
    assert all(name.startswith("tmp-reply-") for name in names)


def test_empty_prefix_rejected(memory_broker: InMemoryBroker) -> None:
    with pytest.raises(ValueError):
        ReplyChannelManager(memory_broker, prefix="")


@pytest.mark.asyncio
async def test_acquire_creates_and_release_deletes(memory_broker: InMemoryBroker) -> None:
    manager = ReplyChannelManager(memory_broker)

    handle = await manager.acquire()
    assert memory_broker.channel_exists(handle.name)

    await manager.release(handle)
    assert not memory_broker.channel_exists(handle.name)
    assert handle.released


@pytest.mark.asyncio
async def test_release_is_idempotent() -> None:
    broker = AsyncMock()
    manager = ReplyChannelManager(broker)
    handle = ChannelHandle("tmp-reply-1")

    await manager.release(handle)
    await manager.release(handle)

    broker.delete_channel_if_present.assert_awaited_once_with("tmp-reply-1")


@pytest.mark.asyncio
async def test_scoped_channel_released_on_error(memory_broker: InMemoryBroker) -> None:
    manager = ReplyChannelManager(memory_broker)

    with pytest.raises(RuntimeError):
        async with manager.reply_channel() as handle:
            assert memory_broker.channel_exists(handle.name)
            raise RuntimeError("boom")

    assert memory_broker.channels == []


@pytest.mark.asyncio
async def test_acquire_failure_is_channel_management_failure() -> None:
    broker = AsyncMock()
    broker.create_channel_if_absent.side_effect = ConnectionError("broker down")
    manager = ReplyChannelManager(broker)

    with pytest.raises(ChannelManagementFailure) as excinfo:
        await manager.acquire()

    assert excinfo.value.channel is not None
    assert excinfo.value.channel.startswith("tmp-reply-")
    assert isinstance(excinfo.value.__cause__, ConnectionError)


@pytest.mark.asyncio
async def test_release_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    broker = AsyncMock()
    broker.delete_channel_if_present.side_effect = ConnectionError("gone")
    manager = ReplyChannelManager(broker)
    handle = ChannelHandle("tmp-reply-2")

    with caplog.at_level(logging.WARNING, logger="rasputin.domain.channels"):
        await manager.release(handle)

    assert handle.released
    assert any(record.getMessage() == "channel.release_failed" for record in caplog.records)
