"""
Tests for the pending-operations queue
"""
import pytest

from transport_backend.services.errors import NotFoundError
from transport_backend.services.sync_queue_service import SyncQueueService


class TestSyncQueueService:

    def test_pending_is_oldest_first(self, session):
        service = SyncQueueService(session)
        first = service.enqueue('trip', 12, 'create', {'trip_number': 'TR-20240310-001'})
        second = service.enqueue('driver', 'a1', 'update')
        assert [i.id for i in service.pending()] == [first.id, second.id]
        assert [i.id for i in service.pending('driver')] == [second.id]
        assert first.entity_id == '12'

    def test_stats_and_failures(self, app, session):
        app.config['SYNC_MAX_RETRIES'] = 2
        service = SyncQueueService(session)
        item = service.enqueue('trip', 1, 'create')
        service.enqueue('trip', 2, 'delete')
        service.enqueue('vehicle', 3, 'update')

        service.increment_retry(item.id, 'timeout')
        assert service.stats().failed == 0
        service.increment_retry(item.id, 'timeout')

        stats = service.stats()
        assert stats.total == 3
        assert stats.by_entity == {'trip': 2, 'vehicle': 1}
        assert stats.failed == 1
        assert item.last_error == 'timeout'

    def test_remove_and_clear(self, session):
        service = SyncQueueService(session)
        item = service.enqueue('trip', 1, 'create')
        service.enqueue('trip', 2, 'create')
        service.enqueue('driver', 3, 'create')

        assert service.remove(item.id) is True
        with pytest.raises(NotFoundError):
            service.remove(item.id)
        assert service.clear('trip') == 1
        assert service.clear() == 1
        assert service.pending() == []


class TestSyncQueueEndpoints:

    def test_enqueue_and_list(self, client):
        resp = client.post('/api/sync-queue', json={'entity': 'trip', 'entity_id': '7', 'operation': 'create'})
        assert resp.status_code == 201
        item_id = resp.get_json()['id']

        resp = client.post(f'/api/sync-queue/{item_id}/retry', json={'error': 'offline'})
        assert resp.get_json()['retry_count'] == 1

        items = client.get('/api/sync-queue').get_json()
        assert [i['id'] for i in items] == [item_id]

    def test_invalid_operation(self, client):
        resp = client.post('/api/sync-queue', json={'entity': 'trip', 'entity_id': '7', 'operation': 'merge'})
        assert resp.status_code == 400
        assert 'operation' in resp.get_json()['messages']

    def test_remove_missing_item(self, client):
        assert client.delete('/api/sync-queue/42').status_code == 404
