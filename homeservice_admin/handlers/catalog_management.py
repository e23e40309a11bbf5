# homeservice_admin/handlers/catalog_management.py
import logging
from typing import List, Optional
from telegram import Update
from telegram.ext import (
    BaseHandler as TelegramHandler, ContextTypes, ConversationHandler,
    CommandHandler, MessageHandler, CallbackQueryHandler, filters
)
from .base_handler import BaseHandler
from ..constants import *
from ..exceptions import (
    AdminClientError, MalformedResponseError, MutationInProgressError, UnauthorizedError,
    describe_error
)
from ..models import Category, Language
from ..services import CatalogTree, MutationCoordinator, NodeKind
from ..utils.files import inspect_icon, inspect_spreadsheet
from ..utils.forms import (
    FieldKind, FormKind, FormSession, category_form, service_form, service_options,
    translation_form
)

logger = logging.getLogger(__name__)

def _id_from(data: str, prefix: str) -> int:
    return int(data[len(prefix):])

class CatalogManagementHandler(BaseHandler):
    """Service catalog management: tree, forms, deletion and import"""

    # Tree view

    async def render_catalog(self, update: Update, context: ContextTypes.DEFAULT_TYPE,
                             notice: Optional[str] = None):
        """Show the catalog tree, refetching it first when stale"""
        tree = self.tree_for(context)
        categories = await tree.read()

        if categories is None:
            if isinstance(tree.error, UnauthorizedError):
                text = self.messages.SESSION_EXPIRED
            else:
                text = self.messages.load_error(describe_error(tree.error))
            if notice:
                text = f"{notice}\n\n{text}"
            await self.reply(update, text, self.keyboards.load_error())
        elif not categories:
            await self.reply(update, self.messages.empty_catalog(notice),
                             self.keyboards.empty_catalog(tree.language))
        else:
            await self.reply(update, self.messages.catalog_header(tree, notice),
                             self.keyboards.catalog_tree(tree))

    async def show_catalog(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Entry point: /start, /catalog and the back buttons"""
        if not await self.admin_query(update):
            return
        await self.render_catalog(update, context)

    async def refresh_catalog(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Refetch the tree (also the Try Again button)"""
        if not await self.admin_query(update):
            return
        await self.tree_for(context).refresh()
        await self.render_catalog(update, context)

    async def close_catalog(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return
        self.tree_for(context).discard()
        await self.reply(update, self.messages.catalog_closed())

    async def show_language_menu(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return
        language = self.tree_for(context).language
        await self.reply(update, self.messages.language_menu(language),
                         self.keyboards.language_menu(language))

    async def set_language(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return
        language = Language(update.callback_query.data[len(CB_SET_LANGUAGE):])
        self.tree_for(context).set_language(language)
        await self.render_catalog(update, context)

    async def toggle_node(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Expand or collapse a category or service row"""
        if not await self.admin_query(update):
            return
        data = update.callback_query.data
        if data.startswith(CB_TOGGLE_CATEGORY):
            kind, node_id = NodeKind.CATEGORY, _id_from(data, CB_TOGGLE_CATEGORY)
        else:
            kind, node_id = NodeKind.SERVICE, _id_from(data, CB_TOGGLE_SERVICE)
        self.tree_for(context).toggle_expansion(kind, node_id)
        await self.render_catalog(update, context)

    async def change_page(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return
        self.tree_for(context).page = _id_from(update.callback_query.data, CB_TREE_PAGE)
        await self.render_catalog(update, context)

    async def view_category(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return
        category_id = _id_from(update.callback_query.data, CB_VIEW_CATEGORY)
        tree = self.tree_for(context)
        await tree.read()
        category = tree.find_category(category_id)
        if category is None:
            await self.reply(update, "❌ Category not found.", self.keyboards.back_to_catalog())
            return
        await self.reply(update, self.messages.format_category(category),
                         self.keyboards.category_actions(category))

    async def view_service(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return
        service_id = _id_from(update.callback_query.data, CB_VIEW_SERVICE)
        tree = self.tree_for(context)
        await tree.read()
        service = tree.find_service(service_id)
        if service is None:
            await self.reply(update, "❌ Service not found.", self.keyboards.back_to_catalog())
            return
        await self.reply(update,
                         self.messages.format_service(service, tree.category_of_service(service_id)),
                         self.keyboards.service_actions(service))

    async def find_services(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """/find <name>: services whose name contains the term"""
        if not await self.admin_query(update):
            return
        term = " ".join(context.args or []).strip()
        if not term:
            await self.reply(update, "🔎 Usage: /find <service name>")
            return

        tree = self.tree_for(context)
        if await tree.read() is None:
            await self.reply(update, self.messages.load_error(describe_error(tree.error)),
                             self.keyboards.load_error())
            return

        results = tree.search_services(term)
        if not results:
            await self.reply(update, f"🔎 No services match “{term}”.", self.keyboards.back_to_catalog())
            return
        await self.reply(update, f"🔎 {len(results)} service(s) match “{term}”:",
                         self.keyboards.search_results(results))

    # Forms

    async def _start_form(self, update: Update, context: ContextTypes.DEFAULT_TYPE, form: FormSession):
        context.user_data[FORM_KEY] = form
        await self.reply(update, self.messages.form_question(form), self.keyboards.form_field(form))
        return FORM_INPUT

    async def _not_found(self, update: Update, what: str):
        await self.reply(update, f"❌ {what} not found.", self.keyboards.back_to_catalog())
        return ConversationHandler.END

    async def start_add_category(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return ConversationHandler.END
        tree = self.tree_for(context)
        return await self._start_form(update, context, category_form(tree.language))

    async def start_edit_category(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return ConversationHandler.END
        category_id = _id_from(update.callback_query.data, CB_EDIT_CATEGORY)
        tree = self.tree_for(context)
        await tree.read()
        category = tree.find_category(category_id)
        if category is None:
            return await self._not_found(update, "Category")
        return await self._start_form(update, context, category_form(tree.language, category))

    async def _categories(self, tree: CatalogTree) -> List[Category]:
        """Choices for the service form's category field"""
        try:
            return await self.repository.list_categories(tree.language)
        except AdminClientError as e:
            logger.warning(f"Loading categories failed, using the catalog tree: {e}")
            return tree.categories or []

    async def start_add_service(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return ConversationHandler.END
        category_id = _id_from(update.callback_query.data, CB_ADD_SERVICE)
        tree = self.tree_for(context)
        await tree.read()
        form = service_form(tree.language, category_id, categories=await self._categories(tree))
        return await self._start_form(update, context, form)

    async def start_add_sub_service(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return ConversationHandler.END
        parent_id = _id_from(update.callback_query.data, CB_ADD_SUB_SERVICE)
        tree = self.tree_for(context)
        await tree.read()
        parent = tree.find_service(parent_id)
        if parent is None:
            return await self._not_found(update, "Parent service")
        # sub-services belong to the category of their topmost ancestor
        category = tree.category_of_service(parent_id)
        category_id = category.node_id if category is not None else parent.category_id
        form = service_form(tree.language, category_id, parent=parent,
                            categories=await self._categories(tree))
        return await self._start_form(update, context, form)

    async def start_edit_service(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return ConversationHandler.END
        service_id = _id_from(update.callback_query.data, CB_EDIT_SERVICE)
        tree = self.tree_for(context)
        await tree.read()
        service = tree.find_service(service_id)
        if service is None:
            return await self._not_found(update, "Service")
        category_id = service.category_id
        if category_id is None:
            category = tree.category_of_service(service_id)
            category_id = category.node_id if category is not None else None
        form = service_form(tree.language, category_id, service=service,
                            parent=tree.parent_of_service(service_id),
                            categories=await self._categories(tree))
        return await self._start_form(update, context, form)

    async def start_translation(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Add Language on a category or service"""
        if not await self.admin_query(update):
            return ConversationHandler.END
        data = update.callback_query.data
        tree = self.tree_for(context)
        await tree.read()
        if data.startswith(CB_TRANSLATE_CATEGORY):
            owner_kind = NodeKind.CATEGORY
            owner = tree.find_category(_id_from(data, CB_TRANSLATE_CATEGORY))
        else:
            owner_kind = NodeKind.SERVICE
            owner = tree.find_service(_id_from(data, CB_TRANSLATE_SERVICE))
        if owner is None:
            return await self._not_found(update, owner_kind.value.capitalize())
        return await self._start_form(update, context,
                                      translation_form(owner_kind, owner, tree.language))

    async def _next_step(self, update: Update, context: ContextTypes.DEFAULT_TYPE,
                         form: FormSession, error: Optional[str] = None):
        """Ask the next question, or show the summary once every field is answered"""
        if form.is_complete:
            await self.reply(update, self.messages.form_summary(form, error),
                             self.keyboards.form_summary(form))
            return FORM_CONFIRM
        await self.reply(update, self.messages.form_question(form, error),
                         self.keyboards.form_field(form))
        return FORM_INPUT

    async def handle_form_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        form = context.user_data.get(FORM_KEY)
        if form is None:
            return ConversationHandler.END

        current = form.current_field
        error = None
        if current is None:
            pass
        elif current.kind is FieldKind.PHOTO:
            error = "Please send a photo or an image file."
        elif current.kind is FieldKind.CHOICE:
            error = "Please choose one of the buttons."
        elif current.kind is FieldKind.SEARCH:
            error = await self._search_parent(context, form, update.message.text)
        else:
            try:
                form.accept(update.message.text)
            except ValueError as e:
                error = str(e)
        return await self._next_step(update, context, form, error)

    async def _search_parent(self, context: ContextTypes.DEFAULT_TYPE, form: FormSession,
                             term: str) -> Optional[str]:
        """Offer the services matching `term` as parent choices, never the edited service itself"""
        term = (term or "").strip()
        if not term:
            return "Type part of a service name."
        tree = self.tree_for(context)
        await tree.read()
        matches = tree.search_services(term, exclude_id=form.target_id)
        key = form.current_field.key
        if not matches:
            form.options.pop(key, None)
            return f"No services match “{term}”."
        form.options[key] = service_options(matches[:MAX_PARENT_MATCHES])
        return None

    async def handle_form_photo(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        form = context.user_data.get(FORM_KEY)
        if form is None:
            return ConversationHandler.END

        current = form.current_field
        if current is None or current.kind is not FieldKind.PHOTO:
            return await self._next_step(update, context, form, "This step does not take a file.")

        content, filename = await self.download_attachment(update, context)
        try:
            upload = inspect_icon(content, filename)
        except AdminClientError as e:
            return await self._next_step(update, context, form, describe_error(e))
        form.accept(upload)
        return await self._next_step(update, context, form)

    async def handle_form_button(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Skip, keep-current and choice buttons"""
        query = update.callback_query
        await query.answer()
        form = context.user_data.get(FORM_KEY)
        if form is None:
            return ConversationHandler.END

        current = form.current_field
        data = query.data
        error = None
        try:
            if current is None:
                pass
            elif data == CB_FORM_SKIP:
                form.accept(None)
            elif data == CB_FORM_KEEP:
                form.keep()
            elif current.kind in (FieldKind.CHOICE, FieldKind.SEARCH):
                value = data[len(CB_FORM_CHOICE):]
                if value not in [choice for _, choice in form.choices_for(current)]:
                    raise ValueError("Please choose one of the buttons.")
                form.accept(value)
            else:
                error = "That button belongs to an earlier question."
        except ValueError as e:
            error = str(e)
        return await self._next_step(update, context, form, error)

    async def edit_form_field(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        query = update.callback_query
        await query.answer()
        form = context.user_data.get(FORM_KEY)
        if form is None:
            return ConversationHandler.END
        form.edit(query.data[len(CB_FORM_EDIT):])
        return await self._next_step(update, context, form)

    async def save_form(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Submit the form through the mutation coordinator"""
        query = update.callback_query
        form = context.user_data.get(FORM_KEY)
        if form is None:
            await query.answer()
            return ConversationHandler.END

        coordinator = self.coordinator_for(context)
        await query.answer()
        try:
            payload = form.build_payload()
        except ValueError as e:
            return await self._next_step(update, context, form, str(e))

        await self.reply(update, self.messages.saving(form))
        try:
            notice = await self._submit(form, payload, coordinator)
        except MutationInProgressError as e:
            return await self._next_step(update, context, form, f"{e} Please wait.")
        except MalformedResponseError:
            # the write went through, the tree was already reloaded
            context.user_data.pop(FORM_KEY, None)
            await self.render_catalog(update, context, self.messages.SAVED_UNREADABLE_REPLY)
            return ConversationHandler.END
        except AdminClientError as e:
            logger.warning(f"Saving {form.title} failed: {e}")
            return await self._next_step(update, context, form, describe_error(e))

        context.user_data.pop(FORM_KEY, None)
        await self.render_catalog(update, context, notice)
        return ConversationHandler.END

    async def _submit(self, form: FormSession, payload, coordinator: MutationCoordinator) -> str:
        if form.kind is FormKind.CATEGORY:
            await coordinator.submit_category(form.target_id, payload.to_multipart())
            return "✅ Category saved."
        if form.kind is FormKind.SERVICE:
            await coordinator.submit_service(form.target_id, form.parent_service_id, payload.to_multipart())
            return "✅ Service saved."
        await coordinator.submit_translation(form.owner_kind, form.target_id, payload)
        return f"✅ {payload.lang.label} translation saved."

    # Deletion

    async def ask_delete_service(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return ConversationHandler.END
        service_id = _id_from(update.callback_query.data, CB_DELETE_SERVICE)
        tree = self.tree_for(context)
        await tree.read()
        context.user_data[DELETING_SERVICE_KEY] = service_id
        await self.reply(update, self.messages.delete_warning(tree.find_service(service_id)),
                         self.keyboards.confirm_delete(service_id))
        return CONFIRM_DELETE_SERVICE

    async def handle_delete_confirmation(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        query = update.callback_query
        service_id = context.user_data.get(DELETING_SERVICE_KEY)
        coordinator = self.coordinator_for(context)
        if service_id is not None and coordinator.is_deleting_service:
            await query.answer("⏳ Still deleting, please wait")
            return CONFIRM_DELETE_SERVICE
        await query.answer()
        if service_id is None:
            return ConversationHandler.END

        try:
            await coordinator.confirm_delete(service_id)
        except AdminClientError as e:
            logger.warning(f"Deleting service {service_id} failed: {e}")
            context.user_data.pop(DELETING_SERVICE_KEY, None)
            await self.reply(update, f"❌ {describe_error(e)}", self.keyboards.back_to_catalog())
            return ConversationHandler.END

        context.user_data.pop(DELETING_SERVICE_KEY, None)
        await self.render_catalog(update, context, "✅ Service deleted.")
        return ConversationHandler.END

    # Bulk import

    async def start_import(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        if not await self.admin_query(update):
            return ConversationHandler.END
        await self.reply(update, self.messages.import_prompt(), self.keyboards.cancel_keyboard())
        return WAITING_IMPORT_FILE

    async def handle_import_file(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        coordinator = self.coordinator_for(context)
        content, filename = await self.download_attachment(update, context)
        try:
            upload = inspect_spreadsheet(content, filename)
            await coordinator.bulk_import(upload)
        except AdminClientError as e:
            logger.warning(f"Importing {filename} failed: {e}")
            await self.reply(update, f"❌ {describe_error(e)}\nSend another file or cancel.",
                             self.keyboards.cancel_keyboard())
            return WAITING_IMPORT_FILE

        await self.render_catalog(update, context, "✅ Services imported.")
        return ConversationHandler.END

    async def handle_import_text(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        await self.reply(update, "📎 Please send the spreadsheet as a file.", self.keyboards.cancel_keyboard())
        return WAITING_IMPORT_FILE

    async def cancel(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Close the open form or dialog and go back to the tree"""
        if update.callback_query:
            await update.callback_query.answer()
        context.user_data.pop(FORM_KEY, None)
        context.user_data.pop(DELETING_SERVICE_KEY, None)
        await self.render_catalog(update, context, self.messages.CANCELLED)
        return ConversationHandler.END

    # Registration

    def build_conversation(self) -> ConversationHandler:
        """Forms, delete confirmation and import, one conversation per admin"""
        return ConversationHandler(
            entry_points=[
                CallbackQueryHandler(self.start_add_category, pattern=f'^{CB_ADD_CATEGORY}$'),
                CallbackQueryHandler(self.start_edit_category, pattern=rf'^{CB_EDIT_CATEGORY}\d+$'),
                CallbackQueryHandler(self.start_add_service, pattern=rf'^{CB_ADD_SERVICE}\d+$'),
                CallbackQueryHandler(self.start_add_sub_service, pattern=rf'^{CB_ADD_SUB_SERVICE}\d+$'),
                CallbackQueryHandler(self.start_edit_service, pattern=rf'^{CB_EDIT_SERVICE}\d+$'),
                CallbackQueryHandler(
                    self.start_translation,
                    pattern=rf'^({CB_TRANSLATE_CATEGORY}|{CB_TRANSLATE_SERVICE})\d+$'
                ),
                CallbackQueryHandler(self.ask_delete_service, pattern=rf'^{CB_DELETE_SERVICE}\d+$'),
                CallbackQueryHandler(self.start_import, pattern=f'^{CB_IMPORT}$'),
            ],
            states={
                FORM_INPUT: [
                    MessageHandler(filters.PHOTO | filters.Document.IMAGE, self.handle_form_photo),
                    MessageHandler(filters.TEXT & ~filters.COMMAND, self.handle_form_text),
                    CallbackQueryHandler(
                        self.handle_form_button,
                        pattern=f'^({CB_FORM_SKIP}|{CB_FORM_KEEP}|{CB_FORM_CHOICE}.+)$'
                    ),
                ],
                FORM_CONFIRM: [
                    CallbackQueryHandler(self.save_form, pattern=f'^{CB_FORM_SAVE}$'),
                    CallbackQueryHandler(self.edit_form_field, pattern=f'^{CB_FORM_EDIT}'),
                ],
                CONFIRM_DELETE_SERVICE: [
                    CallbackQueryHandler(self.handle_delete_confirmation, pattern=f'^{CB_CONFIRM_DELETE}$'),
                ],
                WAITING_IMPORT_FILE: [
                    MessageHandler(filters.Document.ALL, self.handle_import_file),
                    MessageHandler(filters.TEXT & ~filters.COMMAND, self.handle_import_text),
                ],
            },
            fallbacks=[
                CommandHandler('cancel', self.cancel),
                CallbackQueryHandler(self.cancel, pattern=f'^{CB_CANCEL}$'),
            ],
            allow_reentry=True,
        )

    def build_handlers(self) -> List[TelegramHandler]:
        return [
            CommandHandler(['start', 'catalog'], self.show_catalog),
            CommandHandler('find', self.find_services),
            self.build_conversation(),
            CallbackQueryHandler(self.show_catalog, pattern=f'^{CB_CATALOG}$'),
            CallbackQueryHandler(self.refresh_catalog, pattern=f'^{CB_REFRESH}$'),
            CallbackQueryHandler(self.close_catalog, pattern=f'^{CB_CLOSE}$'),
            CallbackQueryHandler(self.show_language_menu, pattern=f'^{CB_LANGUAGE_MENU}$'),
            CallbackQueryHandler(self.set_language, pattern=f'^{CB_SET_LANGUAGE}[A-Z]+$'),
            CallbackQueryHandler(
                self.toggle_node,
                pattern=rf'^({CB_TOGGLE_CATEGORY}|{CB_TOGGLE_SERVICE})\d+$'
            ),
            CallbackQueryHandler(self.change_page, pattern=rf'^{CB_TREE_PAGE}\d+$'),
            CallbackQueryHandler(self.view_category, pattern=rf'^{CB_VIEW_CATEGORY}\d+$'),
            CallbackQueryHandler(self.view_service, pattern=rf'^{CB_VIEW_SERVICE}\d+$'),
        ]
