# homeservice_admin/utils/messages.py
from typing import Optional
from ..models import Category, Language, Service
from ..services import CatalogTree
from .formatters import format_fee, resolve_icon_url
from .forms import FieldKind, FormSession

class Messages:
    ACCESS_DENIED = "⛔️ You do not have access to this section."
    CANCELLED = "❌ Operation cancelled."
    SESSION_EXPIRED = (
        "🔑 The API rejected the admin token.\n"
        "Update API_TOKEN and restart the bot."
    )
    SAVED_UNREADABLE_REPLY = "⚠️ Saved, but the server reply could not be read. Check the tree below."

    @staticmethod
    def catalog_header(tree: CatalogTree, notice: Optional[str] = None) -> str:
        header = (
            "🗂 Services Management\n"
            f"🌐 Language: {tree.language.label}\n"
            f"📁 Categories: {len(tree.categories or [])}\n\n"
            "Tap ▸ to expand, tap a name for actions."
        )
        return f"{notice}\n\n{header}" if notice else header

    @staticmethod
    def empty_catalog(notice: Optional[str] = None) -> str:
        text = (
            "📭 No Categories Found\n"
            "Get started by creating your first service category."
        )
        return f"{notice}\n\n{text}" if notice else text

    @staticmethod
    def load_error(error_text: str) -> str:
        return (
            "❌ Error Loading Services\n\n"
            f"{error_text or 'An error occurred while loading services.'}"
        )

    @staticmethod
    def _translations(translations) -> str:
        if not translations:
            return ""
        lines = ["", "🌐 Translations:"]
        for lang, text in sorted(translations.items()):
            lines.append(f"- {lang}: {text.name}")
        return "\n".join(lines)

    @staticmethod
    def format_category(category: Category) -> str:
        text = (
            f"📁 {category.display_name}\n\n"
            f"📝 Description: {category.description or '—'}\n"
            f"📱 Mobile app: {'Yes' if category.is_mobile_category else 'No'}\n"
            f"🔧 Services: {len(category.services)}\n"
        )
        icon_url = resolve_icon_url(category.icon)
        if icon_url:
            text += f"🖼 Icon: {icon_url}\n"
        return text + Messages._translations(category.translations)

    @staticmethod
    def format_service(service: Service, category: Optional[Category] = None) -> str:
        text = f"🔧 {service.name}\n\n"
        if category is not None:
            text += f"📁 Category: {category.display_name}\n"
        text += f"📝 Description: {service.description or '—'}\n"
        if service.service_fee is not None:
            text += f"💰 Price: {format_fee(service.service_fee)}\n"
        if service.estimated_duration:
            text += f"⏱ Duration: {service.estimated_duration}\n"
        if service.technician_count is not None:
            text += f"👷 Technicians: {service.technician_count}\n"
        if service.booking_count is not None:
            text += f"📅 Bookings: {service.booking_count}\n"
        text += f"🗂 Sub-services: {len(service.services)}\n"
        icon_url = resolve_icon_url(service.icon)
        if icon_url:
            text += f"🖼 Icon: {icon_url}\n"
        return text + Messages._translations(service.translations)

    @staticmethod
    def delete_warning(service: Optional[Service]) -> str:
        name = service.name if service is not None else "this service"
        return (
            f"⚠️ Delete {name}?\n\n"
            "Are you sure you want to delete this service? This action cannot be undone, "
            "and will remove all sub-services as well."
        )

    @staticmethod
    def form_question(form: FormSession, error: Optional[str] = None) -> str:
        current = form.current_field
        lines = [f"🧾 {form.title}"]
        if error:
            lines.append(f"❌ {error}")
        lines.append("")
        lines.append(current.prompt)
        if form.has_value(current.key):
            lines.append(f"Current: {form.display_value(current)}")
        elif not current.required:
            lines.append("(optional)")
        if current.kind is FieldKind.CHOICE:
            lines.append("Use the buttons below.")
        elif current.kind is FieldKind.SEARCH and form.choices_for(current):
            lines.append("Pick a match below, or type another name.")
        return "\n".join(lines)

    @staticmethod
    def form_summary(form: FormSession, error: Optional[str] = None) -> str:
        lines = [f"🧾 {form.title}", ""]
        for label, value in form.summary():
            lines.append(f"• {label}: {value}")
        if error:
            lines.extend(["", f"❌ {error}", "Fix the values and save again."])
        else:
            lines.extend(["", "Save these values?"])
        return "\n".join(lines)

    @staticmethod
    def saving(form: FormSession) -> str:
        return f"🧾 {form.title}\n\n⏳ Saving..."

    @staticmethod
    def import_prompt() -> str:
        return (
            "📥 Import services\n\n"
            "Send the spreadsheet (.xlsx, .xls or .csv) as a file.\n"
            "The server creates the services listed in it."
        )

    @staticmethod
    def language_menu(current: Language) -> str:
        return f"🌐 Current language: {current.label}\nChoose the catalog language:"

    @staticmethod
    def catalog_closed() -> str:
        return "👋 Catalog closed. Send /catalog to open it again."
