"""User-facing texts produced by the orchestrator."""

from ..errors import RESOLUTION_HINT

WELCOME = (
    '🎯 Welcome to "{name}"!\n\n'
    "This is a sidebar conversation from the main group. You are now a group "
    "admin and can manage this space for focused discussions."
)

CREATED_IN_DM = (
    '✅ Created sidebar group "{name}"!\n\n'
    "Is there anyone you would like me to add? You can mention them like:\n"
    "@username1 @username2.eth @0x1234...\n\n"
    "Just reply with the @mentions and I'll add those users to the group."
)

CREATED_PRIVATE = (
    '✅ Created private sidebar group "{name}"!\n\n'
    "To add users to this private group, reply with @mentions like:\n"
    "@{agent} @username1 @username2.eth @0x1234...\n\n"
    "Note: Use usernames, ENS domains, or wallet addresses."
)

INVITATION = (
    '🎯 "{name}" sidebar group created! '
    "Would you like to join this focused discussion?"
)
JOIN_LABEL = "✅ Yes, Join"
DECLINE_LABEL = "❌ No Thanks"

CREATE_FAILED = (
    '❌ Failed to create sidebar group "{name}". Please try again later.'
    "\n\nError: {error}"
)
EMPTY_NAME = "Please give the group a name, e.g. \"create Project X\"."

JOINED = (
    '✅ Great! You\'re now in "{name}" sidebar group.\n\n'
    "You'll receive messages and can participate in this focused discussion! "
    "Check your group conversations for the new sidebar."
)
ALREADY_MEMBER = (
    'ℹ️ You\'re already in "{name}"! Check your group conversations to find it.'
)
JOIN_TRANSIENT = (
    "⚠️ There's a temporary network issue preventing group access right now.\n\n"
    'Please try joining "{name}" again in a few minutes, or contact support '
    "if the issue persists."
)
JOIN_FAILED = '❌ Failed to add you to "{name}". Error: {error}. Please contact support.'
JOIN_ANNOUNCEMENT = '🎉 {member} joined the "{name}" sidebar discussion!'

DECLINED = '✅ You\'ve declined to join "{name}". No worries!'

NO_MENTIONS = (
    "No usernames found in your message. Please mention users like "
    "@username, @username.eth, or @0x1234..."
)
NONE_RESOLVED = (
    "❌ Could not resolve any usernames to valid addresses. "
    "Failed usernames: {tokens}\n\n" + RESOLUTION_HINT
)
MEMBERS_ADDED = '✅ Added {count} member(s) to "{name}"'
MEMBERS_ANNOUNCEMENT = '🎉 Added {count} new member(s) to "{name}": {members}'
