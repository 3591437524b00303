from typing import Optional

import cn2an

ONE_ON_ONE_LABEL = "一对一通话"


def format_group_name(name: Optional[str], user_count: int) -> str:
    """Display name of a group: its own name, else a label derived from the member count."""
    if name is not None:
        return name
    if user_count <= 2:
        return ONE_ON_ONE_LABEL
    return f"{cn2an.an2cn(user_count)}人通话"
