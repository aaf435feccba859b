"""
Heuristic tables for README job-table extraction.

Everything here is data: string rules observed in hand-maintained job
READMEs. The parser, extractor and harmonizer read these tables and never
hardcode the values themselves, so new sources can be supported by
extending a list.
"""

import re

# Heading words that carry no category information. Matched
# case-insensitively as whole words, each occurrence removed.
CATEGORY_FILLER_TOKENS = [
    'positions',
    'position',
    'roles',
    'role',
    'jobs',
    'job',
    'opportunities',
    'openings',
    'new grad',
    'entry level',
    'full time',
    'full-time',
]

# Year tokens ("2024", "2025", ...) are filler as well
CATEGORY_FILLER_PATTERNS = [
    r'20\d{2}',
]

CATEGORY_MAX_WORDS = 3

# Sections under these headings list closed postings
INACTIVE_HEADING_MARKERS = ['inactive']

# Column header aliases, resolved in this order
COLUMN_ALIASES = {
    'company': ['company', 'employer', 'organization', 'org'],
    'role': ['role', 'position', 'title', 'job'],
    'location': ['location', 'city', 'office', 'where', 'place'],
    'link': ['apply', 'link', 'application', 'url'],
    'date_posted': ['date', 'posted', 'added', 'age', 'when'],
    'notes': ['notes', 'note', 'sponsorship', 'sponsor', 'info', 'requirement', 'status'],
}

# Company cells meaning "same as the row above". Prefixes may carry
# trailing text ("↳ Acme"), markers must fill the whole cell exactly, so an
# employer called "Ditto" stays a company.
DITTO_PREFIXES = ['↳']
DITTO_MARKERS = ['"', '〃', "''", 'ditto']

# Markers some READMEs put next to big-tech companies
FIRE_MARKERS = ['🔥', ':fire:', 'alt="fire"']

FAANG_COMPANIES = {
    'amazon',
    'apple',
    'facebook',
    'google',
    'meta',
    'microsoft',
    'netflix',
    'nvidia',
    'alphabet',
    'aws',
    'amazon web services',
    'deepmind',
    'google deepmind',
    'youtube',
    'instagram',
    'whatsapp',
    'linkedin',
    'openai',
    'anthropic',
    'tesla',
    'uber',
    'airbnb',
    'salesforce',
    'oracle',
    'adobe',
    'stripe',
}

# Header cells repeated inside the body are not jobs
HEADER_ECHO_VALUES = {
    'company': 'company',
    'role': 'role',
}

# Categories that say nothing about the kind of work
GENERIC_CATEGORY_EXACT = [
    'daily list',
    'new jobs',
    'jobs',
    'listings',
    'opportunities',
    'positions',
    'all jobs',
    'other',
    'see full',
    'see more',
    'view all',
]

# Substring matches. Internship status is tracked on the posting itself,
# "intern" here only decides whether the category is replaced.
GENERIC_CATEGORY_PATTERNS = [
    'daily',
    'list',
    'new grad',
    'newgrad',
    'intern',
    'fall',
    'spring',
    'summer',
    'winter',
]

GENERIC_CATEGORY_REGEXES = [
    re.compile(r'\b\d{4}\b'),
]

INTERNSHIP_MARKERS = ['intern']

# Page titles mentioning these raise deterministic confidence
PAGE_JOB_KEYWORDS = [
    'job', 'career', 'hiring', 'position', 'opportunity',
    'engineer', 'developer', 'internship', 'new grad',
]
