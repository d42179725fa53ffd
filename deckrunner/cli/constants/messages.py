# === Global parser (user-facing strings) ===
PARSER_DESC = "Run and monitor the deckathon automation scripts"
ARG_HELP_VERBOSE = "Enable verbose logging"
HELP_AVAILABLE_COMMANDS = "Available commands"

# === Run command group ===
RUN_GROUP_NAME = "run"
RUN_GROUP_DESC = "Launch an automation script and follow its progress"
CREATE_ACCOUNT_CMD_DESC = "Register a new account and complete the dropout flow"
DROPOUT_CMD_DESC = "Complete the dropout flow for an existing account"
ARG_HELP_NETNAME = "Netname of the existing account"
ARG_HELP_PASSWORD = "Password of the existing account"
ARG_HELP_API_KEY = "Custom Gemini API key (defaults to the one in .env)"
ARG_HELP_CHROME_PATH = "Custom Chrome executable (defaults to CHROME_PATH in .env)"
ARG_HELP_PROJECT_ROOT = "Directory containing the automation scripts"

RUN_STAGE = "Stage: {stage}"
RUN_GENERATED_CREDENTIALS = "Generated credentials: {credentials}"
RUN_VALIDATION_FAILED = "Validation Error: {error}"
RUN_ALREADY_ACTIVE = "An automation run is already active"
RUN_CANCELLING = "Stopping automation..."

# === Show config command ===
SHOW_CONFIG_NAME = "show-config"
SHOW_CONFIG_DESC = "Show the resolved configuration and .env defaults"
SHOW_CONFIG_API_KEY = "GEMINI_API_KEY: {status}"
SHOW_CONFIG_API_KEY_SET = "set in .env"
SHOW_CONFIG_API_KEY_UNSET = "not set"
SHOW_CONFIG_CHROME = "Chrome: {label}"
