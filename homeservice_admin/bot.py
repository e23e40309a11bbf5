# homeservice_admin/bot.py
import logging
from typing import Optional
from telegram import Update
from telegram.ext import Application, ContextTypes
from .api import ApiClient
from .config import Config
from .handlers import CatalogManagementHandler
from .services import CatalogRepository

logger = logging.getLogger(__name__)

class ServiceCatalogBot:
    def __init__(self, api_client: Optional[ApiClient] = None):
        """Build the application and wire the catalog handlers"""
        self.api_client = api_client or ApiClient()
        self.repository = CatalogRepository(self.api_client)
        self.catalog_handler = CatalogManagementHandler(self.repository)
        self.application = (
            Application.builder()
            .token(Config.TELEGRAM_TOKEN)
            .post_init(self._on_startup)
            .post_shutdown(self._on_shutdown)
            .build()
        )
        self.setup_handlers()

    def setup_handlers(self):
        """Register the bot handlers"""
        for handler in self.catalog_handler.build_handlers():
            self.application.add_handler(handler)
        self.application.add_error_handler(self.on_error)

    async def _on_startup(self, application: Application):
        await self.api_client.connect()

    async def _on_shutdown(self, application: Application):
        await self.api_client.close()

    @staticmethod
    async def on_error(update: object, context: ContextTypes.DEFAULT_TYPE):
        logger.error("Unhandled error while processing an update", exc_info=context.error)
        if isinstance(update, Update) and update.effective_message:
            await update.effective_message.reply_text("❌ Something went wrong. Please try again.")

    def run(self):
        """Start polling until interrupted"""
        self.application.run_polling(allowed_updates=Update.ALL_TYPES)
