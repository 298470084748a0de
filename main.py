from siteblocker.cli import cli

if __name__ == "__main__":
    # Writing to /etc/hosts needs root; `get` and `--dry-run` work without it.
    cli(prog_name="site-blocker")
