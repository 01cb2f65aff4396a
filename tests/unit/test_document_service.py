"""Unit тесты DocumentServiceDB на in-memory SQLite."""

from datetime import date, timedelta

import pytest
import pytest_asyncio

from apps.api.services.car_service_db import CarServiceDB
from apps.api.services.document_service_db import DocumentServiceDB
from core.errors import Forbidden, NotFound
from shared.services.upload_rules import IncomingFile


def _pdf(name="policy.pdf", content=b"%PDF-1.4"):
    return IncomingFile(file_name=name, content_type="application/pdf", content=content)


def _fields(**overrides):
    fields = {
        "type": "insurance",
        "title": "Insurance",
        "description": "Full coverage",
        "expiry_date": date.today() + timedelta(days=10),
    }
    fields.update(overrides)
    return fields


class TestDocumentServiceDB:
    """Тесты для DocumentServiceDB."""

    @pytest.fixture
    def service(self, db_session, storage):
        return DocumentServiceDB(db_session, storage)

    @pytest_asyncio.fixture
    async def car(self, db_session, storage, owner):
        return await CarServiceDB(db_session, storage).add_car(owner.id, {
            "make": "Mazda", "model": "CX-5", "year": 2021, "vin": None, "license_plate": "MZ 5",
        })

    @pytest.mark.asyncio
    async def test_add_document_with_file_stores_metadata(self, service, storage, owner, car):
        document = await service.add_document(owner.id, car.id, _fields(), _pdf())

        assert document.file_name == "policy.pdf"
        assert document.file_type == "application/pdf"
        assert document.file_size == len(b"%PDF-1.4")
        assert document.file_url.startswith(storage.public_base_url + "/documents/")

    @pytest.mark.asyncio
    async def test_add_document_to_foreign_or_missing_car(self, service, owner, stranger, car):
        with pytest.raises(Forbidden):
            await service.add_document(stranger.id, car.id, _fields())
        with pytest.raises(NotFound) as exc_info:
            await service.add_document(owner.id, "6f1c2f1e-8d2b-4c59-9a53-2f4b3b1d0a11", _fields())
        assert exc_info.value.message == "Car not found"

    @pytest.mark.asyncio
    async def test_remove_file_clears_metadata_only(self, service, storage, owner, car):
        document = await service.add_document(owner.id, car.id, _fields(), _pdf())
        key = storage.key_from_url(document.file_url)

        updated = await service.update_document(owner.id, document.id, car.id, _fields(), remove_file=True)

        assert (updated.file_url, updated.file_name, updated.file_type, updated.file_size) == (None, None, None, None)
        assert updated.title == "Insurance"
        assert storage.deleted == [key]

        refilled = await service.update_document(owner.id, document.id, car.id, _fields(), file=_pdf("new.pdf"))
        assert refilled.file_name == "new.pdf"
        assert refilled.file_url is not None

    @pytest.mark.asyncio
    async def test_new_file_wins_over_remove_flag(self, service, storage, owner, car):
        document = await service.add_document(owner.id, car.id, _fields(), _pdf())
        old_key = storage.key_from_url(document.file_url)

        updated = await service.update_document(
            owner.id, document.id, car.id, _fields(), remove_file=True, file=_pdf("renewed.pdf")
        )

        assert updated.file_name == "renewed.pdf"
        assert storage.deleted == [old_key]

    @pytest.mark.asyncio
    async def test_update_with_other_car_id_is_not_found(self, service, owner, car):
        document = await service.add_document(owner.id, car.id, _fields())
        with pytest.raises(NotFound) as exc_info:
            await service.update_document(
                owner.id, document.id, "6f1c2f1e-8d2b-4c59-9a53-2f4b3b1d0a11", _fields()
            )
        assert exc_info.value.message == "Document not found"

    @pytest.mark.asyncio
    async def test_update_clears_omitted_optional_fields(self, service, owner, car):
        document = await service.add_document(owner.id, car.id, _fields())
        updated = await service.update_document(
            owner.id, document.id, car.id, _fields(description=None, expiry_date=None)
        )
        assert updated.description is None
        assert updated.expiry_date is None

    @pytest.mark.asyncio
    async def test_list_is_scoped_to_owner(self, service, owner, stranger, car):
        await service.add_document(owner.id, car.id, _fields(title="First"))
        await service.add_document(owner.id, car.id, _fields(title="Second"))

        titles = [d.title for d in await service.list_documents(owner.id, car.id)]
        assert titles == ["Second", "First"]
        assert await service.list_documents(stranger.id, car.id) == []

    @pytest.mark.asyncio
    async def test_delete_document_removes_file(self, service, storage, owner, stranger, car):
        document = await service.add_document(owner.id, car.id, _fields(), _pdf())

        with pytest.raises(Forbidden):
            await service.delete_document(stranger.id, document.id)

        await service.delete_document(owner.id, document.id)
        assert storage.objects == {}
        with pytest.raises(NotFound):
            await service.get_document(owner.id, document.id)
