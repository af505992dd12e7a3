"""Services package: client-side intake, dispatch, normalization and ledgers."""
