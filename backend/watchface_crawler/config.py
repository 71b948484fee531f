"""
Site configurations for catalog sources.

Each site has a SiteConfig that defines:
- The primary listing URL and the site root used for canonical detail URLs
- The content readiness selector waited on after navigation
- CSS selectors for listing and detail extraction
"""

from .base import SiteConfig


# ============================================================
# SELECTORS
# Listing page markers (Webflow-generated class names)
# ============================================================
WATCHFACELY_SELECTORS = {
    # Listing page
    'name': '.text-block-2',
    'container': 'div, article, section',
    'image': 'img',
    'detail_link': 'a[href*="/face/"]',
    'any_link': 'a[href]',
    'author': '.author_name, [class*="author"], [class*="composer"], [class*="by"]',
    'description': 'p, .description, [class*="desc"]',
    'heading': 'h1, h2, h3, h4, h5, .title, [class*="name"], .heading-3',

    # Detail page
    'detail_name': '.heading-3',
    'detail_author': '.author_name',
    'detail_image': 'img[src*="snapshot.png"], img[src*="watchfaces"], img[src*="assets.watchfacely.com"]',
    'detail_description': 'p, .description, [class*="desc"], .text-block',
    'compatibility': '[class*="apps"], [class*="Apps"], [class*="compatibility"]',
}


# ============================================================
# SITE CONFIGURATIONS
# ============================================================

SITES = {
    'watchfacely': SiteConfig(
        name='Watchfacely',
        key='watchfacely',
        listing_url='https://www.watchfacely.com/latest',
        base_url='https://www.watchfacely.com',
        ready_selector='.text-block-2, img',
        selectors=WATCHFACELY_SELECTORS,
        enabled=True,
    ),
}


# ============================================================
# HELPER FUNCTIONS
# ============================================================

def get_site_config(site_key: str) -> SiteConfig:
    """
    Get configuration for a site by its key.

    Args:
        site_key: Site identifier (e.g., 'watchfacely')

    Returns:
        SiteConfig for the site

    Raises:
        ValueError: If site_key is not found
    """
    if site_key not in SITES:
        valid_keys = ', '.join(sorted(SITES.keys()))
        raise ValueError(f"Unknown site: '{site_key}'. Valid sites: {valid_keys}")
    return SITES[site_key]


def list_sites() -> list:
    """List all site keys."""
    return list(SITES.keys())


def get_site_summary() -> list:
    """Get a summary of all sites for display."""
    summary = []
    for key, config in SITES.items():
        summary.append({
            'key': key,
            'name': config.name,
            'enabled': config.enabled,
            'url': config.listing_url,
        })
    return summary
