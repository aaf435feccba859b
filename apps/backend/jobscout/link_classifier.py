"""
Link classification for job application URLs.

Decides whether a URL points at the hiring company or at a third-party
board/ATS, and whether a company URL is a homepage or a specific posting.
All functions are pure; the domain table is read-only.
"""
import logging
from typing import Iterable, Optional, Tuple
from urllib.parse import urlparse

from .models import LinkClassification

logger = logging.getLogger(__name__)

# Domain -> display name. Checked in insertion order, first substring hit
# wins, so subdomains are listed before their parent domain.
AGGREGATOR_DOMAINS = {
    # Major aggregators
    'simplify.jobs': 'Simplify',
    'simplify.co': 'Simplify',
    'jobright.ai': 'Jobright',
    'linkedin.com': 'LinkedIn',
    'indeed.com': 'Indeed',
    'glassdoor.com': 'Glassdoor',
    'ziprecruiter.com': 'ZipRecruiter',
    'monster.com': 'Monster',
    'dice.com': 'Dice',
    'careerbuilder.com': 'CareerBuilder',
    'handshake.com': 'Handshake',
    'joinhandshake.com': 'Handshake',

    # Tech-focused boards
    'wellfound.com': 'Wellfound',
    'angel.co': 'Wellfound',
    'builtin.com': 'BuiltIn',
    'hired.com': 'Hired',
    'otta.com': 'Otta',
    'levels.fyi': 'Levels.fyi',
    'triplebyte.com': 'Triplebyte',
    'turing.com': 'Turing',
    'ycombinator.com': 'Y Combinator',

    # ATS platforms
    'jobs.lever.co': 'Lever',
    'lever.co': 'Lever',
    'boards.greenhouse.io': 'Greenhouse',
    'job-boards.greenhouse.io': 'Greenhouse',
    'greenhouse.io': 'Greenhouse',
    'myworkdayjobs.com': 'Workday',
    'myworkday.com': 'Workday',
    'workday.com': 'Workday',
    'smartrecruiters.com': 'SmartRecruiters',
    'icims.com': 'iCIMS',
    'taleo.net': 'Taleo',
    'successfactors.com': 'SAP SuccessFactors',
    'jobvite.com': 'Jobvite',
    'ashbyhq.com': 'Ashby',
    'bamboohr.com': 'BambooHR',
    'workable.com': 'Workable',
    'recruitee.com': 'Recruitee',
    'breezy.hr': 'Breezy',
    'jazzhr.com': 'JazzHR',
    'applytojob.com': 'JazzHR',
    'oraclecloud.com': 'Oracle Cloud HCM',

    # Regional boards
    'seek.com.au': 'Seek',
    'reed.co.uk': 'Reed',
    'totaljobs.com': 'TotalJobs',
    'cv-library.co.uk': 'CV-Library',
    'xing.com': 'Xing',
    'stepstone.de': 'StepStone',
    'naukri.com': 'Naukri',
}

# Paths that mean "the company's site", not a posting
HOMEPAGE_PATHS = {
    '', '/', '/about', '/about-us', '/about/', '/company', '/company/',
    '/home', '/home/', '/index.html', '/en', '/en/', '/en-us', '/en-us/',
}

JOB_PATH_SEGMENTS = [
    '/job/', '/jobs/', '/careers/', '/career/', '/apply/', '/req/',
    '/position/', '/positions/', '/opening/', '/openings/', '/posting/',
    '/postings/', '/vacancy/', '/vacancies/',
]

JOB_QUERY_PARAMS = [
    'job=', 'jobid=', 'job_id=', 'gh_jid=', 'posting_id=', 'req=',
    'reqid=', 'lever-source', 'jk=',
]


def classify(url: str) -> LinkClassification:
    """Classify a URL as a company link or a named aggregator link."""
    lowered = (url or '').lower()
    for domain, name in AGGREGATOR_DOMAINS.items():
        if domain in lowered:
            return LinkClassification.aggregator(name)
    return LinkClassification.company()


def is_aggregator(url: str) -> bool:
    return classify(url).is_aggregator


def aggregator_name(url: str) -> Optional[str]:
    """Display name of the aggregator hosting ``url``, None for company links."""
    classification = classify(url)
    return classification.name if classification.is_aggregator else None


def separate_links(links: Iterable[str]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """
    Split links into the first company link and the first aggregator link.

    Returns:
        (company_link, aggregator_link, aggregator_name)
    """
    company_link = None
    aggregator_link = None
    name = None

    for link in links:
        link = (link or '').strip()
        if not link:
            continue
        classification = classify(link)
        if classification.is_aggregator:
            if aggregator_link is None:
                aggregator_link = link
                name = classification.name
        elif company_link is None:
            company_link = link

    return company_link, aggregator_link, name


def is_company_homepage(url: str) -> bool:
    """
    True when ``url`` looks like a company homepage rather than a posting.

    The path must be root or an allow-listed homepage path, carry no job
    path segment or job query parameter, and have at most one segment.
    """
    try:
        parsed = urlparse((url or '').strip())
    except ValueError as e:
        logger.debug(f"Unparsable URL {url!r}: {e}")
        return False

    if not parsed.scheme or not parsed.netloc:
        return False

    path = parsed.path.lower()
    query = parsed.query.lower()

    # Trailing slash so "/careers" matches the "/careers/" segment
    padded = path if path.endswith('/') else path + '/'
    if any(segment in padded for segment in JOB_PATH_SEGMENTS):
        return False
    if any(param in query for param in JOB_QUERY_PARAMS):
        return False

    segments = [s for s in path.split('/') if s]
    if len(segments) > 1:
        return False

    return path in HOMEPAGE_PATHS


def extract_company_homepage(url: str) -> Optional[str]:
    """Reduce a URL to ``scheme://host``; None when either part is missing."""
    try:
        parsed = urlparse((url or '').strip())
    except ValueError:
        return None
    if not parsed.scheme or not parsed.netloc:
        return None
    return f"{parsed.scheme}://{parsed.netloc}"


def extract_domain_name(url: str) -> Optional[str]:
    """Human-readable company name from the host ("www.google.com" -> "Google")."""
    try:
        host = urlparse((url or '').strip()).hostname
    except ValueError:
        return None
    if not host:
        return None
    parts = host.split('.')
    if len(parts) < 2:
        return None
    return parts[-2].capitalize()
