"""
Bundlekit CLI.

Usage:
    bundlekit -c bundles.yaml list
    bundlekit -c bundles.yaml includes Site
    bundlekit -c bundles.yaml build Site -o site.css
    bundlekit -c bundles.yaml resolve ~/css/site.css
    bundlekit -c bundles.yaml check
"""

__version__ = "0.3.0"
__cli_name__ = "bundlekit"
