"""TwiML generation constants."""

# Endpoint Twilio requests TwiML from; used as the action of <Dial> and <Gather>
TWILIO_ENDPOINT = "/twilio"

# Timeout in seconds for <Gather> (user input) and <Dial> (forwarded calls)
DEFAULT_TIMEOUT = 20

# <Say> defaults
DEFAULT_VOICE = "woman"
DEFAULT_LANGUAGE = "en-GB"

# <Pause> length in seconds before hanging up
HANGUP_PAUSE_LENGTH = 1

# Caller ID reported by the Twilio web client
ANONYMOUS_CLIENT = "client:Anonymous"
