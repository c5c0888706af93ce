"""Slack integration for the video relay.

WHY: Slack is both where new videos are announced and where operators
inspect or undo what the bot has published.

HOW: SlackPublisher posts announcements and uploads files through the
slack_sdk WebClient. A slack-bolt app in Socket Mode serves the /list
command and its delete buttons while the poller runs in a background
thread.

RULES:
- Socket Mode requires SLACK_BOT_TOKEN and SLACK_APP_TOKEN
- Announcements go to SLACK_CHANNEL_ID
- All Slack actions must be ack()'d within 3 seconds
"""
