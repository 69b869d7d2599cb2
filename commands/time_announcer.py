"""报时文字生成"""

import datetime


def greeting_for(hour: int) -> str:
    """12 点前早上好，18 点前下午好，其余晚上好"""
    if hour < 12:
        return "Good morning"
    if hour < 18:
        return "Good afternoon"
    return "Good evening"


def format_clock(now: datetime.datetime) -> str:
    """12 小时制时间，如 3:07 PM"""
    hour = now.hour % 12 or 12
    suffix = "AM" if now.hour < 12 else "PM"
    return f"{hour}:{now.minute:02d} {suffix}"


def format_date(now: datetime.datetime) -> str:
    """如 Monday, October 19, 2026"""
    return f"{now:%A}, {now:%B} {now.day}, {now.year}"


def compose_time_announcement(now: datetime.datetime) -> str:
    return f"{greeting_for(now.hour)}. The time is {format_clock(now)}"
