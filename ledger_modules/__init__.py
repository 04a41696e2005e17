"""Report-level modules built on ledger_kernel."""
