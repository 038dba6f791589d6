"""Construction site ledger: bank, vendor, contractor and payroll reconciliation."""


# Import main lazily to avoid circular dependencies
def __getattr__(name):
    if name == "main":
        from siteledger.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
