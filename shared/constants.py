"""
Game constants for the property card game.
All monetary values are in millions (M).
"""

# Turn structure
CARDS_DRAWN_PER_TURN = 2
MAX_PLAYS_PER_TURN = 3
HAND_LIMIT = 7
STARTING_HAND_SIZE = 5

# Table
MIN_PLAYERS = 2
MAX_PLAYERS = 5
GAME_CODE_LENGTH = 6

# Winning
SETS_TO_WIN = 3

# Improvements
MAX_HOUSES_PER_SET = 4
HOUSE_RENT_BONUS = 3
HOTEL_RENT_BONUS = 5

# Action card amounts
DEBT_COLLECTOR_AMOUNT = 5
BIRTHDAY_AMOUNT = 2
PASS_GO_DRAW_COUNT = 2

# Property color data
# Format: color -> (display name, set size, rent by number of cards held)
PROPERTY_COLORS = {
    "BROWN": ("Brown", 2, [1, 2]),
    "LIGHT_BLUE": ("Light Blue", 3, [1, 2, 3]),
    "PINK": ("Pink", 3, [1, 2, 4]),
    "ORANGE": ("Orange", 3, [1, 3, 5]),
    "RED": ("Red", 3, [2, 3, 6]),
    "YELLOW": ("Yellow", 3, [2, 4, 6]),
    "GREEN": ("Green", 3, [2, 4, 7]),
    "DARK_BLUE": ("Dark Blue", 2, [3, 8]),
    "RAILROAD": ("Railroad", 4, [1, 2, 3, 4]),
    "UTILITY": ("Utility", 2, [1, 2]),
}

# Property cards
# Format: (card id, name, color, value)
PROPERTY_CARDS = [
    ("prop_brown_1", "Mediterranean Avenue", "BROWN", 1),
    ("prop_brown_2", "Baltic Avenue", "BROWN", 1),

    ("prop_lightblue_1", "Oriental Avenue", "LIGHT_BLUE", 1),
    ("prop_lightblue_2", "Vermont Avenue", "LIGHT_BLUE", 1),
    ("prop_lightblue_3", "Connecticut Avenue", "LIGHT_BLUE", 1),

    ("prop_pink_1", "St. Charles Place", "PINK", 2),
    ("prop_pink_2", "States Avenue", "PINK", 2),
    ("prop_pink_3", "Virginia Avenue", "PINK", 2),

    ("prop_orange_1", "St. James Place", "ORANGE", 2),
    ("prop_orange_2", "Tennessee Avenue", "ORANGE", 2),
    ("prop_orange_3", "New York Avenue", "ORANGE", 2),

    ("prop_red_1", "Kentucky Avenue", "RED", 3),
    ("prop_red_2", "Indiana Avenue", "RED", 3),
    ("prop_red_3", "Illinois Avenue", "RED", 3),

    ("prop_yellow_1", "Atlantic Avenue", "YELLOW", 3),
    ("prop_yellow_2", "Ventnor Avenue", "YELLOW", 3),
    ("prop_yellow_3", "Marvin Gardens", "YELLOW", 3),

    ("prop_green_1", "Pacific Avenue", "GREEN", 4),
    ("prop_green_2", "North Carolina Avenue", "GREEN", 4),
    ("prop_green_3", "Pennsylvania Avenue", "GREEN", 4),

    ("prop_darkblue_1", "Park Place", "DARK_BLUE", 4),
    ("prop_darkblue_2", "Boardwalk", "DARK_BLUE", 4),

    ("prop_railroad_1", "Reading Railroad", "RAILROAD", 2),
    ("prop_railroad_2", "Pennsylvania Railroad", "RAILROAD", 2),
    ("prop_railroad_3", "B&O Railroad", "RAILROAD", 2),
    ("prop_railroad_4", "Short Line", "RAILROAD", 2),

    ("prop_utility_1", "Electric Company", "UTILITY", 2),
    ("prop_utility_2", "Water Works", "UTILITY", 2),
]

# Two-color property wildcards
# Format: (card id, colors, value)
WILDCARD_CARDS = [
    ("wildcard_1", ("BROWN", "LIGHT_BLUE"), 1),
    ("wildcard_2", ("PINK", "ORANGE"), 2),
    ("wildcard_3", ("RED", "YELLOW"), 3),
    ("wildcard_4", ("GREEN", "DARK_BLUE"), 4),
    ("wildcard_5", ("RAILROAD", "UTILITY"), 2),
]

# Money denominations
# Format: value -> number of cards
MONEY_DENOMINATIONS = {
    1: 6,
    2: 5,
    3: 3,
    4: 3,
    5: 2,
    10: 1,
}

# Two-color rent cards
# Format: (card id, colors)
RENT_CARDS = [
    ("rent_brown_lightblue", ("BROWN", "LIGHT_BLUE")),
    ("rent_pink_orange", ("PINK", "ORANGE")),
    ("rent_red_yellow", ("RED", "YELLOW")),
    ("rent_green_darkblue", ("GREEN", "DARK_BLUE")),
    ("rent_railroad_utility", ("RAILROAD", "UTILITY")),
]
RENT_CARD_VALUE = 1
WILD_RENT_COUNT = 3
WILD_RENT_VALUE = 3
