"""
使用方式:
    python -m ci_dashboard
    或
    ci-dashboard
"""

from ci_dashboard.main import cli

if __name__ == "__main__":
    cli()
