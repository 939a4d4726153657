"""Application services: reconciliation rules, templates, workspace coordinator."""
