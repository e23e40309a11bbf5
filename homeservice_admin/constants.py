# homeservice_admin/constants.py
"""Conversation states, callback prefixes and upload limits"""

# Conversation states
FORM_INPUT, FORM_CONFIRM, CONFIRM_DELETE_SERVICE, WAITING_IMPORT_FILE = range(4)

# user_data keys
CATALOG_TREE_KEY = "catalog_tree"
COORDINATOR_KEY = "mutation_coordinator"
FORM_KEY = "form"
DELETING_SERVICE_KEY = "deleting_service_id"

# Callback data
CB_CATALOG = "catalog"
CB_REFRESH = "catalog_refresh"
CB_CLOSE = "catalog_close"
CB_TREE_PAGE = "catalog_page_"
CB_LANGUAGE_MENU = "catalog_lang"
CB_SET_LANGUAGE = "catalog_lang_"
CB_TOGGLE_CATEGORY = "tgl_c_"
CB_TOGGLE_SERVICE = "tgl_s_"
CB_VIEW_CATEGORY = "cat_"
CB_VIEW_SERVICE = "svc_"
CB_ADD_CATEGORY = "add_category"
CB_EDIT_CATEGORY = "edit_category_"
CB_ADD_SERVICE = "add_service_"
CB_ADD_SUB_SERVICE = "add_sub_"
CB_EDIT_SERVICE = "edit_service_"
CB_TRANSLATE_CATEGORY = "tr_c_"
CB_TRANSLATE_SERVICE = "tr_s_"
CB_DELETE_SERVICE = "del_s_"
CB_CONFIRM_DELETE = "del_yes"
CB_IMPORT = "import_services"
CB_FORM_SAVE = "form_save"
CB_FORM_SKIP = "form_skip"
CB_FORM_KEEP = "form_keep"
CB_FORM_EDIT = "form_edit_"
CB_FORM_CHOICE = "form_choice_"
CB_CANCEL = "cancel"

# Uploads
MAX_ICON_SIZE = 5 * 1024 * 1024  # 5MB
MAX_IMPORT_SIZE = 20 * 1024 * 1024  # 20MB

ICON_MIME_TYPES = {
    'image/jpeg': '.jpg',
    'image/png': '.png',
    'image/gif': '.gif',
    'image/webp': '.webp',
    'image/svg+xml': '.svg',
}

SPREADSHEET_MIME_TYPES = {
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet': '.xlsx',
    'application/vnd.ms-excel': '.xls',
    'text/csv': '.csv',
    'text/plain': '.csv',
    # libmagic reports some xlsx files as a bare zip archive
    'application/zip': '.xlsx',
}

SPREADSHEET_EXTENSIONS = ('.xlsx', '.xls', '.csv')

# Parent-service search
MAX_PARENT_MATCHES = 10

# Tree rows per keyboard page; a row holds up to two buttons and Telegram caps a keyboard at 100
TREE_ROWS_PER_PAGE = 40
