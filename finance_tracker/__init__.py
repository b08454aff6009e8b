"""Personal finance tracker: expense/income records and monthly reports."""
