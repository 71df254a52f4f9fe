"""Car rental booking ledger: holds, payments and fleet administration."""
