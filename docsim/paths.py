# docsim/paths.py
# Defaults for the command line tools. Library classes take explicit paths.

import os

# --- Base data paths ---
DATA_DIR = "data"

# --- Index output files ---
POSTINGS_PATH = os.path.join(DATA_DIR, "inverted-file.bin")    # flat 4-byte int postings
DICTIONARY_PATH = os.path.join(DATA_DIR, "dictionary.lex")     # versioned lexicon records

# --- Source corpus / queries / run output ---
CORPUS_PATH = os.path.join(DATA_DIR, "corpus.txt")
QUERIES_PATH = os.path.join(DATA_DIR, "queries.txt")
RUN_PATH = os.path.join(DATA_DIR, "run.txt")

# --- Ranking / run format ---
TOP_K = 50
RUN_TAG = "docsim"
SCORE_DECIMALS = 6

# --- Tokenizer truncation mode ---
STEM_LENGTH = 5
