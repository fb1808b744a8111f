from doorman.api.webhooks import voice  # noqa: F401
