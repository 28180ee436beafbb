"""
Configuration for the Connect Four solver, AI player and opening book tools.
"""


# Board geometry (only the standard 7x6 board is supported)
BOARD_CONFIG = {
    'width': 7,
    'height': 6,
}


# Solver Configuration
SOLVER_CONFIG = {
    'tt_size': (1 << 23) + 9,           # Prime slot count (~8.4M slots, 8 bytes each)
    'use_opening_book': True,           # Solver() loads the packaged book unless told otherwise
    'book_path': None,                  # Override the packaged book with a file on disk
    'node_check_interval': 1024,        # Nodes between deadline checks when a time budget is set
}


# AI Player Configuration
AI_PLAYER_CONFIG = {
    'default_difficulty': 1.0,
    'temperature_scale': 0.1,           # temperature = scale * (1 - d) / d
    'difficulty_presets': {
        'easy': 2 / 7,                  # temperature 0.25
        'medium': 0.5,                  # temperature 0.1
        'hard': 0.8,                    # temperature 0.025
        'impossible': 1.0,              # greedy
    },
}


# Opening Book Generator Configuration
BOOK_GENERATOR_CONFIG = {
    'max_depth': 8,                     # Generation time grows exponentially with depth
    'num_workers': 4,                   # Worker processes, each with a private solver
    'chunk_size': 64,                   # Positions handed to a worker at a time
    'tt_size': (1 << 21) + 23,          # Smaller per-worker table (prime)
    'output_path': 'book.bin',
}
