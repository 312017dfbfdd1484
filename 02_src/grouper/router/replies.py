"""Texts of the guided DM flow."""

ASK_CREATE_GROUP = (
    "Hi! I'm Grouper, your Group Creation Assistant. 👋\n\n"
    "Would you like me to create a new group for you? (yes / no)"
)
ASK_GROUP_NAME = "Great! What should the group be called?"
CREATE_DECLINED = (
    "No problem! Whenever you need a group, just say \"create [GroupName]\"."
)
ASK_MENTIONS = (
    "Sure! Reply with the @mentions of the people to add, like:\n"
    "@username1 @username2.eth @0x1234..."
)
ADD_DECLINED = 'All set! "{name}" is ready whenever you are.'
NO_RECENT_GROUP = (
    "❌ No recent group found. Please create a group first or make sure "
    "you're responding to a group creation message."
)
APOLOGY = (
    "Sorry, I encountered an error while processing your request. "
    "Please try again later."
)

# Bot replies that mark a group creation in the recent history
CREATION_MARKERS = (
    "Created sidebar group",
    "Created private sidebar group",
    "Is there anyone you would like me to add",
    "sidebar group created!",
)
