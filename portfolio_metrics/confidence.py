"""Single values shown in place of ranges in High Confidence mode."""


def display_value_for_annualized_ebitda(annualized_ebitda):
    if annualized_ebitda is None or annualized_ebitda.min is None:
        return 0
    return annualized_ebitda.min


def display_value_for_in_year_ebitda(in_year_ebitda, annualized_ebitda):
    """In-year EBITDA is capped by annualized EBITDA, so show the lower minimum."""
    in_year_min = getattr(in_year_ebitda, "min", None)
    annualized_min = getattr(annualized_ebitda, "min", None)
    return min(
        0 if in_year_min is None else in_year_min,
        0 if annualized_min is None else annualized_min,
    )


def display_value_for_sprint_range(sprint_range):
    if sprint_range is None:
        return None
    if sprint_range.start_sprint_id is not None:
        return sprint_range.start_sprint_id
    return sprint_range.end_sprint_id


def display_value_for_duration(assignment):
    if assignment is None or assignment.duration_min is None:
        return 1
    return assignment.duration_min
