"""
Cron expression helpers

Human readable descriptions of standard 5-field cron expressions.
"""

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class CronPreset:
    label: str
    value: str
    description: str


CRON_PRESETS: List[CronPreset] = [
    CronPreset('Every 3 hours', '0 */3 * * *', 'At minute 0 past every 3rd hour'),
    CronPreset('Every 6 hours', '0 */6 * * *', 'At minute 0 past every 6th hour'),
    CronPreset('Every 12 hours', '0 */12 * * *', 'At minute 0 past every 12th hour'),
    CronPreset('Daily at midnight', '0 0 * * *', 'At 00:00 every day'),
    CronPreset('Daily at 6am', '0 6 * * *', 'At 06:00 every day'),
    CronPreset('Daily at noon', '0 12 * * *', 'At 12:00 every day'),
    CronPreset('Weekly (Monday)', '0 0 * * 1', 'At 00:00 on Monday'),
    CronPreset('Monthly (1st)', '0 0 1 * *', 'At 00:00 on day 1 of the month'),
    CronPreset('Custom', 'custom', 'Define your own cron expression'),
]

NAMED_PATTERNS = {
    '0 */3 * * *': 'Every 3 hours',
    '0 */6 * * *': 'Every 6 hours',
    '0 */12 * * *': 'Every 12 hours',
    '0 0 * * *': 'Daily at midnight',
    '0 6 * * *': 'Daily at 6am',
    '0 12 * * *': 'Daily at noon',
    '0 0 * * 1': 'At midnight on Monday',
    '0 0 1 * *': 'At midnight on the 1st of every month',
}

MONTH_NAMES = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']
DAY_NAMES = ['Sunday', 'Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday']


def _to_int(value: str):
    try:
        return int(value)
    except ValueError:
        return None


def cron_to_human(cron: str) -> str:
    """Describe a cron expression

    Known patterns get their short name; anything else is described
    field by field.

    Args:
        cron: 5-field cron expression

    Returns:
        str: Description
    """
    if not cron:
        return 'No schedule set'

    parts = cron.split(' ')
    if len(parts) != 5:
        return 'Invalid cron expression'

    if cron in NAMED_PATTERNS:
        return NAMED_PATTERNS[cron]

    minute, hour, day_month, month, day_week = parts

    if minute == '*':
        description = 'Every minute'
    elif minute.startswith('*/'):
        description = f'Every {minute[2:]} minutes'
    else:
        description = f'At minute {minute}'

    if hour == '*':
        description += ', every hour'
    elif hour.startswith('*/'):
        description += f', every {hour[2:]} hours'
    else:
        description += f', at hour {hour}'

    if day_month != '*':
        if day_month.startswith('*/'):
            description += f', every {day_month[2:]} days'
        else:
            description += f', on day {day_month}'

    if month != '*':
        month_num = _to_int(month)
        if month.startswith('*/'):
            description += f', every {month[2:]} months'
        elif month_num is not None and 1 <= month_num <= 12:
            description += f', in {MONTH_NAMES[month_num - 1]}'
        else:
            description += f', in month {month}'

    if day_week != '*':
        day_num = _to_int(day_week)
        if day_week.startswith('*/'):
            description += f', every {day_week[2:]} days of the week'
        elif day_num is not None and 0 <= day_num <= 6:
            description += f', on {DAY_NAMES[day_num]}'
        else:
            description += f', on weekday {day_week}'

    return description
