"""
Identity constants shared by the profile store and the chat app.

No Django imports here so chat.identifiers can use them at import time.
"""

import re

# Identity-provider uids. "_" is excluded because it joins the two
# participants of a conversation id.
UID_MAX_LENGTH = 128
UID_REGEX = re.compile(r"^[A-Za-z0-9.:-]{1,128}$")

# Sender name when neither display_name nor legacy_name is set
DEFAULT_SENDER_NAME = "Usuario"

# Session refresh (sign-in) retries against the identity provider
SESSION_REFRESH_CONFIG = {
    "MAX_ATTEMPTS": 3,
    "BASE_DELAY_SECONDS": 1.5,
}
