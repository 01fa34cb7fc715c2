"""Streamlit interface. Run through `household-budget-serve`."""
