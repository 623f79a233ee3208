UNCATEGORISED_DECK_NAME = "#UNCATEGORISED#"

DECK_NAME_MAX_LENGTH = 255
USERNAME_MAX_LENGTH = 64
