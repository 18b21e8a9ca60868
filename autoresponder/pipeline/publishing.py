"""
Turning stored responses into storefront replies.
"""
from typing import Optional
import logging

from autoresponder.constants import AI_ATTRIBUTION
from autoresponder.errors import StorefrontError
from autoresponder.models import AuditAction, GeneratedResponse, ResponseStatus
from autoresponder.options import ResponderOptions
from autoresponder.services.store import ResponseStore
from autoresponder.services.storefront import Storefront

logger = logging.getLogger(__name__)


class ReplyPublisher:
    def __init__(self, options: ResponderOptions, storefront: Storefront, store: ResponseStore):
        self.options = options
        self.storefront = storefront
        self.store = store

    def reply_text(self, text: str) -> str:
        if self.options.advanced_settings.include_ai_attribution:
            return f"{text}\n\n{AI_ATTRIBUTION}"
        return text

    def publish(self, response: GeneratedResponse, text: Optional[str] = None) -> bool:
        """
        Make the reply for ``response`` visible and mark the response published.

        An existing held reply is approved in place (its text replaced when
        ``text`` differs from the stored one); otherwise a new approved reply
        is created. Storefront failures are logged and reported as False.
        """
        body = self.reply_text(text if text is not None else response.response_text)
        reply_id = response.reply_id
        try:
            if reply_id:
                if text is not None and text != response.response_text:
                    self.storefront.update_reply_text(reply_id, body)
                self.storefront.set_reply_status(reply_id, True)
            else:
                reply_id = self.storefront.create_reply(
                    response.product_id, response.review_id, body, approved=True
                )
                self.store.attach_reply(response.id, reply_id)
        except StorefrontError as e:
            logger.error(f"Response {response.id}: Failed to publish reply: {e}")
            self.store.log(
                AuditAction.REVIEW_PROCESSING_ERROR,
                review_id=response.review_id,
                response_id=response.id,
                details={"stage": "publish", "error": str(e)},
            )
            return False

        logger.info(f"Response {response.id}: Published as reply {reply_id}")
        return self.store.set_status(
            response.id,
            ResponseStatus.PUBLISHED,
            details={"comment_id": reply_id},
        )

    def hold(self, response: GeneratedResponse) -> bool:
        """Create the reply in a held state unless one already exists."""
        if response.reply_id:
            logger.info(f"Response {response.id}: Reply {response.reply_id} already exists")
            return True
        try:
            reply_id = self.storefront.create_reply(
                response.product_id,
                response.review_id,
                self.reply_text(response.response_text),
                approved=False,
            )
            self.store.attach_reply(response.id, reply_id)
        except StorefrontError as e:
            logger.error(f"Response {response.id}: Failed to create held reply: {e}")
            self.store.log(
                AuditAction.REVIEW_PROCESSING_ERROR,
                review_id=response.review_id,
                response_id=response.id,
                details={"stage": "hold", "error": str(e)},
            )
            return False

        logger.info(f"Response {response.id}: Held reply {reply_id} awaiting approval")
        self.store.log(
            AuditAction.AI_COMMENT_CREATED,
            review_id=response.review_id,
            response_id=response.id,
            details={"comment_id": reply_id},
        )
        return True
