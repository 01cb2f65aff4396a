"""Unit тесты CarServiceDB на in-memory SQLite."""

import pytest

from apps.api.services.car_service_db import CarServiceDB
from apps.api.services.document_service_db import DocumentServiceDB
from core.errors import Forbidden, NotFound, ValidationFailed
from shared.services.upload_rules import IncomingFile


def _fields(**overrides):
    fields = {
        "make": "Honda",
        "model": "Civic",
        "year": 2018,
        "vin": None,
        "license_plate": "XY 987",
    }
    fields.update(overrides)
    return fields


def _image(name="car.jpg", content=b"jpeg", mime="image/jpeg"):
    return IncomingFile(file_name=name, content_type=mime, content=content)


class TestCarServiceDB:
    """Тесты для CarServiceDB."""

    @pytest.fixture
    def service(self, db_session, storage):
        return CarServiceDB(db_session, storage)

    @pytest.mark.asyncio
    async def test_add_car_with_image(self, service, storage, owner):
        car = await service.add_car(owner.id, _fields(), _image())

        assert car.user_id == owner.id
        assert car.image.startswith(storage.public_base_url + "/cars/")
        assert storage.key_from_url(car.image) in storage.objects

    @pytest.mark.asyncio
    async def test_invalid_image_rejected_before_upload(self, service, storage, owner):
        with pytest.raises(ValidationFailed):
            await service.add_car(owner.id, _fields(), _image("car.gif", mime="image/gif"))
        assert storage.objects == {}
        assert await service.list_cars(owner.id) == []

    @pytest.mark.asyncio
    async def test_list_cars_newest_first_and_scoped(self, service, owner, stranger):
        first = await service.add_car(owner.id, _fields(model="First"))
        second = await service.add_car(owner.id, _fields(model="Second"))
        await service.add_car(stranger.id, _fields(model="Other"))

        cars = await service.list_cars(owner.id)
        assert [c.id for c in cars] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_get_car_not_found_and_forbidden(self, service, owner, stranger):
        car = await service.add_car(owner.id, _fields())

        with pytest.raises(NotFound) as not_found:
            await service.get_car(owner.id, "missing-id")
        assert not_found.value.message == "Car not found"

        with pytest.raises(Forbidden) as forbidden:
            await service.get_car(stranger.id, car.id)
        assert forbidden.value.status_code == 401
        assert forbidden.value.message == "Not authorized to view this car"

    @pytest.mark.asyncio
    async def test_update_replaces_image_and_deletes_previous_once(self, service, storage, owner):
        car = await service.add_car(owner.id, _fields(), _image())
        old_key = storage.key_from_url(car.image)

        updated = await service.update_car(owner.id, car.id, _fields(model="Accord"), _image("new.png", mime="image/png"))

        assert updated.model == "Accord"
        assert updated.image != f"{storage.public_base_url}/{old_key}"
        assert storage.deleted == [old_key]
        assert storage.key_from_url(updated.image) in storage.objects

    @pytest.mark.asyncio
    async def test_update_without_image_keeps_it(self, service, storage, owner):
        car = await service.add_car(owner.id, _fields(vin="1HGCM82633A004352"), _image())
        image = car.image

        updated = await service.update_car(owner.id, car.id, _fields(vin=None))

        assert updated.image == image
        assert updated.vin is None
        assert storage.deleted == []

    @pytest.mark.asyncio
    async def test_foreign_update_leaves_car_unchanged(self, service, owner, stranger):
        car = await service.add_car(owner.id, _fields())

        with pytest.raises(Forbidden):
            await service.update_car(stranger.id, car.id, _fields(make="Stolen"))

        reloaded = await service.get_car(owner.id, car.id)
        assert reloaded.make == "Honda"

    @pytest.mark.asyncio
    async def test_delete_cascades_to_documents_and_files(self, service, db_session, storage, owner):
        car = await service.add_car(owner.id, _fields(), _image())
        documents = DocumentServiceDB(db_session, storage)
        document = await documents.add_document(
            owner.id, car.id, {"type": "tax", "title": "Road tax"},
            IncomingFile("tax.pdf", "application/pdf", b"%PDF"),
        )

        await service.delete_car(owner.id, car.id)

        assert storage.objects == {}
        with pytest.raises(NotFound):
            await documents.get_document(owner.id, document.id)
        with pytest.raises(NotFound):
            await service.delete_car(owner.id, car.id)
