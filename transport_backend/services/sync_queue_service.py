import logging
from flask import current_app, has_app_context
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from transport_backend.extensions import db
from transport_backend.models.sync_queue import SyncQueueItem
from transport_backend.services.errors import ServiceError, NotFoundError
from transport_backend.services.view_models import SyncQueueStats

DEFAULT_MAX_RETRIES = 3


def max_retries():
    if has_app_context():
        return current_app.config.get('SYNC_MAX_RETRIES', DEFAULT_MAX_RETRIES)
    return DEFAULT_MAX_RETRIES


class SyncQueueService:
    """
    Store of operations waiting to be pushed by an external synchroniser.
    Items are returned oldest first; nothing here replays them.
    """

    def __init__(self, session=None):
        self.session = session or db.session

    def enqueue(self, entity, entity_id, operation, payload=None):
        try:
            item = SyncQueueItem(entity=entity, entity_id=str(entity_id), operation=operation, payload=payload)
            self.session.add(item)
            self.session.commit()
            logging.debug(f"Queued {operation} of {entity} {entity_id}")
            return item
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error queueing sync item: {e}", exc_info=True)
            raise ServiceError("Could not queue operation. Please try again later.")

    def pending(self, entity=None):
        try:
            query = self.session.query(SyncQueueItem)
            if entity:
                query = query.filter(SyncQueueItem.entity == entity)
            return query.order_by(SyncQueueItem.created_at, SyncQueueItem.id).all()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching sync queue: {e}", exc_info=True)
            raise ServiceError("Could not fetch sync queue. Please try again later.")

    def stats(self):
        try:
            rows = (
                self.session.query(SyncQueueItem.entity, func.count(SyncQueueItem.id))
                .group_by(SyncQueueItem.entity)
                .all()
            )
            failed = (
                self.session.query(SyncQueueItem)
                .filter(SyncQueueItem.retry_count >= max_retries())
                .count()
            )
            by_entity = {entity: count for entity, count in rows}
            return SyncQueueStats(total=sum(by_entity.values()), by_entity=by_entity, failed=failed)
        except SQLAlchemyError as e:
            logging.error(f"Error computing sync queue stats: {e}", exc_info=True)
            raise ServiceError("Could not fetch sync queue. Please try again later.")

    def increment_retry(self, item_id, error=None):
        try:
            item = self.session.get(SyncQueueItem, item_id)
            if not item:
                raise NotFoundError("Sync queue item not found")
            item.retry_count = (item.retry_count or 0) + 1
            item.last_error = error
            self.session.commit()
            if item.retry_count >= max_retries():
                logging.warning(f"Sync item {item.id} ({item.entity} {item.entity_id}) reached {item.retry_count} retries")
            return item
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error updating sync item: {e}", exc_info=True)
            raise ServiceError("Could not update sync queue. Please try again later.")

    def remove(self, item_id):
        try:
            item = self.session.get(SyncQueueItem, item_id)
            if not item:
                raise NotFoundError("Sync queue item not found")
            self.session.delete(item)
            self.session.commit()
            return True
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error removing sync item: {e}", exc_info=True)
            raise ServiceError("Could not update sync queue. Please try again later.")

    def clear(self, entity=None):
        try:
            query = self.session.query(SyncQueueItem)
            if entity:
                query = query.filter(SyncQueueItem.entity == entity)
            removed = query.delete(synchronize_session=False)
            self.session.commit()
            return removed
        except SQLAlchemyError as e:
            self.session.rollback()
            logging.error(f"Error clearing sync queue: {e}", exc_info=True)
            raise ServiceError("Could not clear sync queue. Please try again later.")
