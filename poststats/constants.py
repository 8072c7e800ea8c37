# --- Internal field identifiers (stable schema) ---
F_POST_ID = "post_id"
F_ACCOUNT_ID = "account_id"
F_ACCOUNT_NAME = "account_name"
F_ACCOUNT_USERNAME = "account_username"
F_DESCRIPTION = "description"
F_PUBLISH_TIME = "publish_time"
F_DATE = "date"
F_POST_TYPE = "post_type"
F_PERMALINK = "permalink"
F_VIEWS = "views"
F_REACH = "post_reach"
F_LIKES = "likes"
F_COMMENTS = "comments"
F_SHARES = "shares"
F_FOLLOWS = "follows"
F_SAVES = "saves"

# Derived / computed fields
F_ENGAGEMENT = "engagement_total"
F_ENGAGEMENT_EXTENDED = "engagement_total_extended"
F_AVERAGE_REACH = "average_reach"
F_POST_COUNT = "post_count"
F_POSTS_PER_DAY = "posts_per_day"

# Synthetic tag written on every stored post record
F_FILE_IDENTIFIER = "_file_identifier"

# Built-in mapping: external CSV header -> internal field.
# These are also the required columns checked before an import.
DEFAULT_MAPPINGS = {
    "Publicerings-id": F_POST_ID,
    "Konto-id": F_ACCOUNT_ID,
    "Kontonamn": F_ACCOUNT_NAME,
    "Kontots användarnamn": F_ACCOUNT_USERNAME,
    "Beskrivning": F_DESCRIPTION,
    "Publiceringstid": F_PUBLISH_TIME,
    "Inläggstyp": F_POST_TYPE,
    "Permalänk": F_PERMALINK,
    "Visningar": F_VIEWS,
    "Räckvidd": F_REACH,
    "Gilla-markeringar": F_LIKES,
    "Kommentarer": F_COMMENTS,
    "Delningar": F_SHARES,
    "Följer": F_FOLLOWS,
    "Sparade objekt": F_SAVES,
}

DISPLAY_NAMES = {
    F_POST_ID: "Post ID",
    F_ACCOUNT_ID: "Account ID",
    F_ACCOUNT_NAME: "Account name",
    F_ACCOUNT_USERNAME: "Username",
    F_DESCRIPTION: "Description",
    F_PUBLISH_TIME: "Publish time",
    F_POST_TYPE: "Type",
    F_PERMALINK: "Link",
    F_VIEWS: "Views",
    F_REACH: "Reach",
    F_AVERAGE_REACH: "Average reach",
    F_ENGAGEMENT: "Interactions",
    F_ENGAGEMENT_EXTENDED: "Total engagement (all types)",
    F_LIKES: "Likes",
    F_COMMENTS: "Comments",
    F_SHARES: "Shares",
    F_SAVES: "Saves",
    F_FOLLOWS: "Follows",
    F_POST_COUNT: "Number of posts",
    F_POSTS_PER_DAY: "Posts per day",
}

# Fallback header spellings seen across export versions and locales
ALTERNATIVE_NAMES = {
    F_VIEWS: ["Views", "Visningar", "Impressions", "Exponeringar", "impressions"],
    F_REACH: ["Reach", "Räckvidd", "reach"],
    F_LIKES: ["Likes", "Gilla-markeringar", "Gilla markeringar", "likes"],
    F_COMMENTS: ["Comments", "Kommentarer", "comments"],
    F_SHARES: ["Shares", "Delningar", "shares"],
    F_FOLLOWS: ["Follows", "Följer", "Följare", "follows"],
    F_SAVES: ["Saves", "Sparade objekt", "Sparade", "saves"],
    F_POST_ID: ["Post ID", "Publicerings-id", "Inläggs-ID", "PostID", "post_id", "post-id"],
    F_ACCOUNT_ID: ["Account ID", "Konto-id", "Konto-ID", "KontoID", "account_id", "page_id"],
    F_ACCOUNT_NAME: ["Account name", "Kontonamn", "Page name", "account_name"],
    F_ACCOUNT_USERNAME: ["Account username", "Kontots användarnamn", "Användarnamn", "Username", "account_username"],
    F_DESCRIPTION: ["Description", "Beskrivning", "description", "Caption", "caption"],
    F_PUBLISH_TIME: ["Publish time", "Publiceringstid", "publish_time", "Date", "date", "Datum"],
    F_POST_TYPE: ["Post type", "Inläggstyp", "Typ", "post_type", "Type", "type"],
    F_PERMALINK: ["Permalink", "Permalänk", "Länk", "permalink", "Link", "link", "URL", "url"],
}

# Literal headers probed for identity fields before the generic fallback
IDENTITY_HEADER_VARIANTS = {
    F_ACCOUNT_NAME: ["account_name", "Account name", "Page name", "Kontonamn"],
    F_ACCOUNT_ID: ["account_id", "Account ID", "Konto-ID", "Page ID"],
}

# Identifiers keep their text form ("007" and "7" are different posts)
IDENTIFIER_FIELDS = (F_POST_ID, F_ACCOUNT_ID)

COLUMN_GROUPS = {
    "Metadata": [F_POST_ID, F_ACCOUNT_ID, F_ACCOUNT_NAME, F_ACCOUNT_USERNAME,
                 F_DESCRIPTION, F_PUBLISH_TIME, F_POST_TYPE, F_PERMALINK],
    "Reach and views": [F_VIEWS, F_REACH, F_AVERAGE_REACH],
    "Engagement": [F_ENGAGEMENT, F_ENGAGEMENT_EXTENDED, F_LIKES, F_COMMENTS,
                   F_SHARES, F_SAVES, F_FOLLOWS],
}

# --- Aggregation ---
BASE_METRICS = [F_LIKES, F_COMMENTS, F_SHARES, F_SAVES, F_FOLLOWS]
ENGAGEMENT_PARTS = [F_LIKES, F_COMMENTS, F_SHARES]
ENGAGEMENT_EXTENDED_PARTS = [F_LIKES, F_COMMENTS, F_SHARES, F_SAVES, F_FOLLOWS]
SUMMABLE_FIELDS = [F_VIEWS, F_REACH, F_LIKES, F_COMMENTS, F_SHARES, F_SAVES, F_FOLLOWS]

ACCOUNT_VIEW_FIELDS = [
    F_VIEWS,
    F_AVERAGE_REACH,
    F_ENGAGEMENT,
    F_ENGAGEMENT_EXTENDED,
    F_LIKES,
    F_COMMENTS,
    F_SHARES,
    F_SAVES,
    F_FOLLOWS,
    F_POST_COUNT,
    F_POSTS_PER_DAY,
]

POST_VIEW_FIELDS = [
    F_REACH,
    F_VIEWS,
    F_ENGAGEMENT,
    F_ENGAGEMENT_EXTENDED,
    F_LIKES,
    F_COMMENTS,
    F_SHARES,
    F_SAVES,
    F_FOLLOWS,
]

POST_TYPE_METRICS = [F_VIEWS, F_REACH, F_ENGAGEMENT, F_LIKES, F_COMMENTS, F_SHARES, F_SAVES, F_FOLLOWS]

# Rates and averages are never totalled across accounts
TOTAL_EXCLUDED_FIELDS = {F_AVERAGE_REACH, F_POSTS_PER_DAY}

MIN_POSTS_FOR_RELIABLE_STATS = 5
UNKNOWN_POST_TYPE = "Unknown"
UNKNOWN_ACCOUNT_NAME = "Unknown account"
ALL_ACCOUNTS = "all_accounts"
TOTAL_ROW_LABEL = "Total"

# --- Storage keys ---
KEY_COLUMN_MAPPINGS = "post_stats_column_mappings"
KEY_ACCOUNT_VIEW = "post_stats_account_view"
KEY_POST_VIEW = "post_stats_post_view"

# --- Table names ---
TBL_KV_ENTRIES = "kv_entries"
TBL_BLOB_ENTRIES = "blob_entries"
TBL_IMPORTED_FILES = "imported_files"
