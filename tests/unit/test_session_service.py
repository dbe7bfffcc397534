"""Unit tests for SessionService."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest

from ragchat.core.exceptions import MessageNotFoundError, SessionNotFoundError
from ragchat.core.settings import FileUploadConfig
from ragchat.repositories.chat_repo import ChatRepository
from ragchat.schemas.session_schema import UpdateSessionRequest
from ragchat.services.file_storage import IncomingFile
from ragchat.services.session_service import SessionService
from ragchat.services.temp_document_service import TempDocumentService
from tests.conftest import CLIENT_ID, seed_session, test_session_factory


@pytest.fixture
async def service(
    temp_document_service: TempDocumentService,
) -> AsyncGenerator[SessionService, None]:
    async with test_session_factory() as session:
        yield SessionService(
            session=session,
            temp_documents=temp_document_service,
            client_id=CLIENT_ID,
        )


async def _seed_messages(session_id: str, count: int) -> None:
    base = datetime(2026, 1, 1, tzinfo=UTC)
    async with test_session_factory() as db:
        repo = ChatRepository(db)
        for i in range(count):
            await repo.create_message(
                session_id=session_id,
                client_id=CLIENT_ID,
                role="user" if i % 2 == 0 else "assistant",
                content=f"m{i}",
                created_at=base + timedelta(seconds=i),
            )
        await db.commit()


class TestCreateAndGet:
    async def test_create_session_commits(self, service: SessionService) -> None:
        created = await service.create_session(role_name="Chef", system_prompt="You cook.")

        async with test_session_factory() as other:
            found = await ChatRepository(other).find_session(created.session_id, CLIENT_ID)
        assert found is not None
        assert found.role_name == "Chef"
        assert len(created.session_id) == 36

    async def test_get_unknown_session(self, service: SessionService) -> None:
        with pytest.raises(SessionNotFoundError):
            await service.get_session("missing")

    async def test_get_foreign_session(self, service: SessionService) -> None:
        foreign = await seed_session(client_id="client-2")

        with pytest.raises(SessionNotFoundError):
            await service.get_session(foreign.session_id)

    async def test_get_or_create_new(self, service: SessionService) -> None:
        chat_session, is_new = await service.get_or_create(None)

        assert is_new is True
        assert chat_session.client_id == CLIENT_ID

    async def test_get_or_create_existing(self, service: SessionService) -> None:
        existing = await seed_session()

        chat_session, is_new = await service.get_or_create(existing.session_id)

        assert is_new is False
        assert chat_session.id == existing.id


class TestListAndMessages:
    async def test_list_sessions(self, service: SessionService) -> None:
        seeded = await seed_session()
        await _seed_messages(seeded.session_id, 3)
        await seed_session(client_id="client-2")

        result = await service.list_sessions()

        assert len(result.sessions) == 1
        assert result.sessions[0].first_message == "m0"
        assert result.sessions[0].last_message == "m2"
        assert result.sessions[0].message_count == 3

    async def test_get_messages_paginates(self, service: SessionService) -> None:
        seeded = await seed_session()
        await _seed_messages(seeded.session_id, 5)

        first = await service.get_messages(seeded.session_id, page=1, page_size=2)
        last = await service.get_messages(seeded.session_id, page=3, page_size=2)

        assert [m.content for m in first.messages] == ["m3", "m4"]
        assert first.pagination.total == 5
        assert first.pagination.has_more is True
        assert [m.content for m in last.messages] == ["m0"]
        assert last.pagination.has_more is False

    async def test_get_messages_includes_temp_files(
        self, service: SessionService, temp_document_service: TempDocumentService
    ) -> None:
        seeded = await seed_session()
        await temp_document_service.upload(
            IncomingFile(filename="notes.txt", content=b"short"), seeded.session_id, CLIENT_ID
        )

        result = await service.get_messages(seeded.session_id)

        assert [f.filename for f in result.temp_files] == ["notes.txt"]


class TestUpdate:
    async def test_update_only_sent_fields(self, service: SessionService) -> None:
        seeded = await seed_session(role_name="Chef", system_prompt="You cook.")

        updated = await service.update_session(
            seeded.session_id, UpdateSessionRequest(system_prompt="You bake.")
        )

        assert updated.role_name == "Chef"
        assert updated.system_prompt == "You bake."

    async def test_update_unknown_session(self, service: SessionService) -> None:
        with pytest.raises(SessionNotFoundError):
            await service.update_session("missing", UpdateSessionRequest(role_name="x"))


class TestDelete:
    async def test_delete_session_cascades(
        self,
        service: SessionService,
        temp_document_service: TempDocumentService,
        upload_config: FileUploadConfig,
    ) -> None:
        seeded = await seed_session()
        await _seed_messages(seeded.session_id, 2)
        await temp_document_service.upload(
            IncomingFile(filename="notes.txt", content=b"short"), seeded.session_id, CLIENT_ID
        )

        await service.delete_session(seeded.session_id)

        async with test_session_factory() as other:
            repo = ChatRepository(other)
            assert await repo.find_session(seeded.session_id, CLIENT_ID) is None
            assert await repo.count_messages(seeded.session_id, CLIENT_ID) == 0
        assert await temp_document_service.active_files(seeded.session_id, CLIENT_ID) == []
        assert not upload_config.session_temp_dir(seeded.session_id, CLIENT_ID).exists()

    async def test_delete_message(self, service: SessionService) -> None:
        seeded = await seed_session()
        await _seed_messages(seeded.session_id, 2)
        async with test_session_factory() as other:
            [first, _] = await ChatRepository(other).find_messages(seeded.session_id, CLIENT_ID)

        await service.delete_message(first.id)

        async with test_session_factory() as other:
            remaining = await ChatRepository(other).find_messages(seeded.session_id, CLIENT_ID)
        assert [m.content for m in remaining] == ["m1"]

    async def test_delete_foreign_message(self, service: SessionService) -> None:
        foreign = await seed_session(client_id="client-2")
        async with test_session_factory() as db:
            message = await ChatRepository(db).create_message(
                session_id=foreign.session_id,
                client_id="client-2",
                role="user",
                content="private",
                created_at=datetime.now(UTC),
            )
            await db.commit()

        with pytest.raises(MessageNotFoundError):
            await service.delete_message(message.id)
