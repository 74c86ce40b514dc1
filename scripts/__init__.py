"""Operator scripts for the blood bank inventory."""
