# homeservice_admin/utils/keyboards.py
import math
from typing import List, Optional
from telegram import InlineKeyboardButton, InlineKeyboardMarkup
from ..constants import *
from ..models import Category, Language, Service
from ..services import CatalogTree, NodeKind
from .forms import FieldKind, FormSession

INDENT = "· "
SHORT_CHOICE_LIST = 3

class Keyboards:
    @staticmethod
    def cancel_keyboard() -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup([[InlineKeyboardButton("❌ Cancel", callback_data=CB_CANCEL)]])

    @staticmethod
    def back_to_catalog() -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup([[InlineKeyboardButton("🔙 Back to catalog", callback_data=CB_CATALOG)]])

    @staticmethod
    def _toolbar(language: Language) -> List[List[InlineKeyboardButton]]:
        return [
            [
                InlineKeyboardButton("➕ Add Category", callback_data=CB_ADD_CATEGORY),
                InlineKeyboardButton(f"🌐 {language.label}", callback_data=CB_LANGUAGE_MENU),
                InlineKeyboardButton("🔄", callback_data=CB_REFRESH),
            ],
            [
                InlineKeyboardButton("📥 Import services", callback_data=CB_IMPORT),
                InlineKeyboardButton("✖️ Close", callback_data=CB_CLOSE),
            ],
        ]

    @staticmethod
    def catalog_tree(tree: CatalogTree) -> InlineKeyboardMarkup:
        """One row per visible node, services indented by depth, paged"""
        rows = []
        for category in tree.categories or []:
            expanded = tree.is_expanded(NodeKind.CATEGORY, category.node_id)
            rows.append(Keyboards._node_row(
                f"📁 {category.display_name}",
                f"{CB_VIEW_CATEGORY}{category.node_id}",
                f"{CB_TOGGLE_CATEGORY}{category.node_id}" if category.has_children else None,
                expanded
            ))
            if expanded:
                Keyboards._service_rows(tree, category.services, 1, rows)

        pages = max(1, math.ceil(len(rows) / TREE_ROWS_PER_PAGE))
        page = min(max(tree.page, 0), pages - 1)
        keyboard = Keyboards._toolbar(tree.language)
        keyboard.extend(rows[page * TREE_ROWS_PER_PAGE:(page + 1) * TREE_ROWS_PER_PAGE])
        if pages > 1:
            keyboard.append(Keyboards._pager(page, pages))
        return InlineKeyboardMarkup(keyboard)

    @staticmethod
    def _pager(page: int, pages: int) -> List[InlineKeyboardButton]:
        row = []
        if page > 0:
            row.append(InlineKeyboardButton("◀️", callback_data=f"{CB_TREE_PAGE}{page - 1}"))
        row.append(InlineKeyboardButton(f"📄 {page + 1}/{pages}", callback_data=f"{CB_TREE_PAGE}{page}"))
        if page < pages - 1:
            row.append(InlineKeyboardButton("▶️", callback_data=f"{CB_TREE_PAGE}{page + 1}"))
        return row

    @staticmethod
    def _service_rows(tree: CatalogTree, services: List[Service], depth: int,
                      keyboard: List[List[InlineKeyboardButton]]):
        for service in services:
            expanded = tree.is_expanded(NodeKind.SERVICE, service.node_id)
            keyboard.append(Keyboards._node_row(
                f"{INDENT * depth}🔧 {service.name}",
                f"{CB_VIEW_SERVICE}{service.node_id}",
                f"{CB_TOGGLE_SERVICE}{service.node_id}" if service.has_children else None,
                expanded
            ))
            if expanded and service.has_children:
                Keyboards._service_rows(tree, service.services, depth + 1, keyboard)

    @staticmethod
    def _node_row(label: str, view_data: str, toggle_data: Optional[str],
                  expanded: bool) -> List[InlineKeyboardButton]:
        row = []
        if toggle_data:
            row.append(InlineKeyboardButton("▾" if expanded else "▸", callback_data=toggle_data))
        row.append(InlineKeyboardButton(label, callback_data=view_data))
        return row

    @staticmethod
    def empty_catalog(language: Language) -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup(Keyboards._toolbar(language))

    @staticmethod
    def load_error() -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup([
            [InlineKeyboardButton("🔁 Try Again", callback_data=CB_REFRESH)],
            [InlineKeyboardButton("🌐 Language", callback_data=CB_LANGUAGE_MENU)],
        ])

    @staticmethod
    def language_menu(current: Language) -> InlineKeyboardMarkup:
        keyboard = [
            [InlineKeyboardButton(
                f"{'✅ ' if lang == current else ''}{lang.label}",
                callback_data=f"{CB_SET_LANGUAGE}{lang.value}"
            )]
            for lang in Language
        ]
        keyboard.append([InlineKeyboardButton("🔙 Back", callback_data=CB_CATALOG)])
        return InlineKeyboardMarkup(keyboard)

    @staticmethod
    def category_actions(category: Category) -> InlineKeyboardMarkup:
        category_id = category.node_id
        keyboard = [
            [
                InlineKeyboardButton("🌐 Add Language", callback_data=f"{CB_TRANSLATE_CATEGORY}{category_id}"),
                InlineKeyboardButton("➕ Add Service", callback_data=f"{CB_ADD_SERVICE}{category_id}"),
            ],
            [InlineKeyboardButton("✏️ Edit Category", callback_data=f"{CB_EDIT_CATEGORY}{category_id}")],
            [InlineKeyboardButton("🔙 Back", callback_data=CB_CATALOG)],
        ]
        return InlineKeyboardMarkup(keyboard)

    @staticmethod
    def service_actions(service: Service) -> InlineKeyboardMarkup:
        service_id = service.node_id
        keyboard = [
            [
                InlineKeyboardButton("🌐 Add Language", callback_data=f"{CB_TRANSLATE_SERVICE}{service_id}"),
                InlineKeyboardButton("➕ Add Sub-Service", callback_data=f"{CB_ADD_SUB_SERVICE}{service_id}"),
            ],
            [
                InlineKeyboardButton("✏️ Edit Service", callback_data=f"{CB_EDIT_SERVICE}{service_id}"),
                InlineKeyboardButton("🗑 Delete Service", callback_data=f"{CB_DELETE_SERVICE}{service_id}"),
            ],
            [InlineKeyboardButton("🔙 Back", callback_data=CB_CATALOG)],
        ]
        return InlineKeyboardMarkup(keyboard)

    @staticmethod
    def confirm_delete(service_id: int) -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup([[
            InlineKeyboardButton("🗑 Delete Service", callback_data=CB_CONFIRM_DELETE),
            InlineKeyboardButton("❌ Cancel", callback_data=CB_CANCEL),
        ]])

    @staticmethod
    def form_field(form: FormSession) -> InlineKeyboardMarkup:
        """Buttons under a form question: choices, skip/keep and cancel"""
        current = form.current_field
        keyboard = []
        if current is not None and current.kind in (FieldKind.CHOICE, FieldKind.SEARCH):
            buttons = [
                InlineKeyboardButton(label, callback_data=f"{CB_FORM_CHOICE}{value}")
                for label, value in form.choices_for(current)
            ]
            # short option lists fit on one row, categories and matches get one each
            if len(buttons) > SHORT_CHOICE_LIST:
                keyboard.extend([button] for button in buttons)
            elif buttons:
                keyboard.append(buttons)
        controls = []
        if form.can_keep():
            controls.append(InlineKeyboardButton("↩️ Keep current", callback_data=CB_FORM_KEEP))
        if form.can_skip():
            label = "🧹 Clear" if form.can_keep() else "⏭ Skip"
            controls.append(InlineKeyboardButton(label, callback_data=CB_FORM_SKIP))
        controls.append(InlineKeyboardButton("❌ Cancel", callback_data=CB_CANCEL))
        keyboard.append(controls)
        return InlineKeyboardMarkup(keyboard)

    @staticmethod
    def form_summary(form: FormSession) -> InlineKeyboardMarkup:
        keyboard = [[InlineKeyboardButton("💾 Save", callback_data=CB_FORM_SAVE)]]
        edit_buttons = [
            InlineKeyboardButton(f"✏️ {f.label}", callback_data=f"{CB_FORM_EDIT}{f.key}")
            for f in form.fields
        ]
        # two edit buttons per row
        for i in range(0, len(edit_buttons), 2):
            keyboard.append(edit_buttons[i:i + 2])
        keyboard.append([InlineKeyboardButton("❌ Cancel", callback_data=CB_CANCEL)])
        return InlineKeyboardMarkup(keyboard)

    @staticmethod
    def search_results(services: List[Service]) -> InlineKeyboardMarkup:
        keyboard = [
            [InlineKeyboardButton(f"🔧 {service.name}", callback_data=f"{CB_VIEW_SERVICE}{service.node_id}")]
            for service in services
        ]
        keyboard.append([InlineKeyboardButton("🔙 Back to catalog", callback_data=CB_CATALOG)])
        return InlineKeyboardMarkup(keyboard)
