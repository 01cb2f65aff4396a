"""Unit тесты GarageStore и Session с подменённым API."""

from unittest.mock import AsyncMock

import pytest

from apps.client.api_client import ApiRequestError
from apps.client.notifications import Notifier, ToastVariant
from apps.client.query_cache import QueryCache
from apps.client.session import LoginRequired, Session
from apps.client.store import GarageStore


@pytest.fixture
def api():
    return AsyncMock()


@pytest.fixture
def session(api):
    session = Session(QueryCache(stale_time=300), api=api)
    session.token = "token"
    return session


@pytest.fixture
def store(session):
    return GarageStore(session, Notifier())


class TestSession:
    """Тесты сессии клиента."""

    @pytest.mark.asyncio
    async def test_login_stores_token_for_requests(self, api):
        api.login.return_value = "jwt-token"
        session = Session(QueryCache(), api=api)

        await session.login("a@example.com", "Secret123")

        assert session.is_authenticated
        assert api.token_provider() == "jwt-token"

    def test_logout_clears_token_and_cache(self, session):
        session.cache.set(("cars",), [{"id": "c1"}])
        session.logout()
        assert session.token is None
        assert session.cache.get(("cars",)) is None

    @pytest.mark.asyncio
    async def test_call_without_token_requires_login(self, session, api):
        session.token = None
        with pytest.raises(LoginRequired):
            await session.call(api.get_cars)
        api.get_cars.assert_not_called()


class TestGarageStore:
    """Тесты загрузки и мутаций."""

    @pytest.mark.asyncio
    async def test_load_cars_uses_cache(self, store, api):
        api.get_cars.return_value = [{"id": "c1"}]
        assert await store.load_cars() == [{"id": "c1"}]
        assert await store.load_cars() == [{"id": "c1"}]
        api.get_cars.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_add_car_invalidates_list(self, store, api):
        store.cache.set(("cars",), [])
        api.add_car.return_value = {"id": "c1"}

        await store.add_car({"make": "Audi"})

        assert not store.cache.is_fresh(("cars",))
        assert store.notifier.visible[-1].variant == ToastVariant.SUCCESS

    @pytest.mark.asyncio
    async def test_update_car_writes_detail_and_invalidates_list(self, store, api):
        store.cache.set(("cars",), [{"id": "c1", "model": "A4"}])
        api.update_car.return_value = {"id": "c1", "model": "A6"}

        await store.update_car("c1", {"model": "A6"})

        assert not store.cache.is_fresh(("cars",))
        assert store.cache.is_fresh(("cars", "c1"))
        assert store.cache.get(("cars", "c1")) == {"id": "c1", "model": "A6"}

    @pytest.mark.asyncio
    async def test_failed_mutation_exposes_field_errors(self, store, api):
        api.add_car.side_effect = ApiRequestError(400, [
            {"msg": "Make is required", "param": "make"},
            {"msg": "Invalid VIN format", "param": "vin"},
        ])

        with pytest.raises(ApiRequestError):
            await store.add_car({})

        assert store.field_errors == {"make": "Make is required", "vin": "Invalid VIN format"}
        assert store.notifier.visible[-1].description == "Make is required"

    @pytest.mark.asyncio
    async def test_delete_car_is_optimistic(self, store, api):
        store.cache.set(("cars",), [{"id": "c1"}, {"id": "c2"}])
        store.cache.set(("cars", "c1"), {"id": "c1"})
        store.cache.set(("documents", "c1"), [])
        seen = []

        async def delete(car_id):
            seen.append(store.cache.get(("cars",)))
            return {"msg": "Car removed"}

        api.delete_car.side_effect = delete
        await store.delete_car("c1")

        assert seen == [[{"id": "c2"}]]
        assert store.cache.get(("cars",)) == [{"id": "c2"}]
        assert ("cars", "c1") not in store.cache
        assert ("documents", "c1") not in store.cache

    @pytest.mark.asyncio
    async def test_delete_car_rolls_back_on_failure(self, store, api):
        store.cache.set(("cars",), [{"id": "c1"}, {"id": "c2"}])
        api.delete_car.side_effect = ApiRequestError(404, [{"msg": "Car not found"}])

        with pytest.raises(ApiRequestError):
            await store.delete_car("c1")

        assert store.cache.get(("cars",)) == [{"id": "c1"}, {"id": "c2"}]
        assert store.notifier.visible[-1].description == "Car not found"

    @pytest.mark.asyncio
    async def test_unauthorized_response_ends_session(self, store, session, api):
        store.cache.set(("cars",), [{"id": "c1"}])
        api.delete_car.side_effect = ApiRequestError(401, [{"msg": "Not authorized, token failed"}])

        with pytest.raises(LoginRequired):
            await store.delete_car("c1")

        assert session.token is None
        assert store.cache.get(("cars",)) is None

    @pytest.mark.asyncio
    async def test_document_mutations_invalidate_car_documents(self, store, api):
        store.cache.set(("documents", "c1"), [{"id": "d1", "title": "Insurance"}])
        store.cache.set(("documents", "c2"), [])
        api.add_document.return_value = {"id": "d2", "title": "Tax"}

        await store.add_document("c1", {"type": "tax", "title": "Tax"})

        api.add_document.assert_awaited_once_with({"type": "tax", "title": "Tax", "carId": "c1"}, None)
        assert not store.cache.is_fresh(("documents", "c1"))
        assert store.cache.is_fresh(("documents", "c2"))
        assert store.notifier.visible[-1].description == "Tax was added successfully"

    @pytest.mark.asyncio
    async def test_delete_document_names_it_in_toast(self, store, api):
        store.cache.set(("documents", "c1"), [{"id": "d1", "title": "Insurance"}])
        api.delete_document.return_value = {"msg": "Document removed"}

        await store.delete_document("c1", "d1")

        api.delete_document.assert_awaited_once_with("d1")
        assert store.notifier.visible[-1].description == "Insurance was deleted successfully"
