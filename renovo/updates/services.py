"""Task board operations, site survey uploads and the project calendar"""
import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from renovo.invoicing.models import ClientQuote
from renovo.procurement.models import Order

from .models import ProjectUpdate, UpdatePhoto, Task

logger = logging.getLogger(__name__)


class TaskError(Exception):
    pass


def stamp_task_status(task, new_status):
    """Set the status; first move to IN_PROGRESS / DONE records when it happened"""
    now = timezone.now()
    if new_status == 'IN_PROGRESS' and not task.started_at:
        task.started_at = now
    if new_status == 'DONE' and not task.completed_at:
        task.completed_at = now
    task.status = new_status


def _reaches(tasks, target_id):
    seen = set()
    stack = list(tasks)
    while stack:
        current = stack.pop()
        if current.id == target_id:
            return True
        if current.id in seen:
            continue
        seen.add(current.id)
        stack.extend(current.dependencies.all())
    return False


def resolve_dependencies(project, dependency_ids, task=None):
    """Dependency tasks for ``task``; they must exist in the project and not form a cycle"""
    ids = {int(dependency_id) for dependency_id in dependency_ids or []}
    if task is not None and task.id in ids:
        raise TaskError('Task cannot depend on itself')
    dependencies = list(Task.objects.filter(project=project, id__in=ids))
    if len(dependencies) != len(ids):
        raise TaskError('Some dependency tasks not found')
    if task is not None and _reaches(dependencies, task.id):
        raise TaskError('Circular task dependency')
    return dependencies


def next_position(project, status):
    last = Task.objects.filter(project=project, status=status).order_by('-position').values_list('position', flat=True).first()
    return 0 if last is None else last + 1


def move_task(task, status, position=None):
    """
    Move a task to ``position`` within the ``status`` column of the board,
    renumbering the column. Without a position the task goes to the end.
    """
    if status not in dict(Task.STATUS_CHOICES):
        raise TaskError(f'Invalid status: {status}')

    with transaction.atomic():
        column = list(
            Task.objects.filter(project_id=task.project_id, status=status).exclude(pk=task.pk).order_by('position', 'id')
        )
        if position is None or int(position) > len(column):
            position = len(column)
        position = max(0, int(position))
        column.insert(position, task)

        previous_status = task.status
        stamp_task_status(task, status)
        for index, sibling in enumerate(column):
            if sibling.pk == task.pk:
                task.position = index
                task.save()
            elif sibling.position != index:
                Task.objects.filter(pk=sibling.pk).update(position=index)

    if previous_status != status:
        logger.info(f"Task {task.id} moved {previous_status} -> {status}")
    return task


def task_stats(tasks, today=None):
    """Counts by status and priority plus completed / overdue and hour / cost totals"""
    today = today or timezone.localdate()
    by_status = {value: 0 for value, _ in Task.STATUS_CHOICES}
    by_priority = {value: 0 for value, _ in Task._meta.get_field('priority').choices}
    totals = {
        'estimated_hours': Decimal('0'),
        'actual_hours': Decimal('0'),
        'estimated_cost': Decimal('0'),
        'actual_cost': Decimal('0'),
    }
    overdue = 0

    for task in tasks:
        by_status[task.status] = by_status.get(task.status, 0) + 1
        by_priority[task.priority] = by_priority.get(task.priority, 0) + 1
        if task.is_overdue(today):
            overdue += 1
        for field in totals:
            totals[field] += getattr(task, field) or Decimal('0')

    return {
        'total': sum(by_status.values()),
        'by_status': by_status,
        'by_priority': by_priority,
        'completed': by_status.get('DONE', 0),
        'overdue': overdue,
        'totals': {field: str(value) for field, value in totals.items()},
    }


def task_board(project):
    """Tasks grouped into the board's status columns"""
    columns = {status: [] for status in Task.BOARD_COLUMNS}
    tasks = project.tasks.select_related('assignee', 'room').prefetch_related('dependencies').order_by('position', 'id')
    for task in tasks:
        columns.setdefault(task.status, []).append(task)
    return columns


# Site survey

def create_survey_update(project, title='', description='', room=None, actor=None):
    return ProjectUpdate.objects.create(
        project=project,
        update_type='PHOTO',
        category='PROGRESS',
        title=title or f"Site survey {timezone.localdate().isoformat()}",
        description=description or '',
        room=room,
        author=actor,
    )


def add_update_photo(update, data, actor=None):
    image = data['image']
    photo = UpdatePhoto(
        update=update,
        image=image,
        size=getattr(image, 'size', 0) or 0,
        caption=data.get('caption') or '',
        notes=data.get('notes') or '',
        tags=data.get('tags') or [],
        room=data.get('room'),
        room_area=data.get('room_area') or '',
        trade_category=data.get('trade_category') or '',
        is_before_photo=data.get('is_before_photo', False),
        is_after_photo=data.get('is_after_photo', False),
        before_after_pair=data.get('before_after_pair'),
        taken_at=data.get('taken_at') or timezone.now(),
        uploaded_by=actor,
    )
    photo.save()
    if photo.is_after_photo and photo.before_after_pair_id:
        UpdatePhoto.objects.filter(pk=photo.before_after_pair_id).update(before_after_pair=photo)
    return photo


# Calendar

def calendar_events(project, start, end):
    """Task due dates, expected deliveries, invoice due dates and update deadlines between two dates"""
    events = []
    today = timezone.localdate()

    for task in project.tasks.filter(due_date__range=(start, end)).exclude(status='CANCELLED'):
        events.append({
            'type': 'task',
            'id': task.id,
            'title': task.title,
            'date': task.due_date.isoformat(),
            'status': task.status,
            'priority': task.priority,
            'overdue': task.is_overdue(today),
        })

    orders = Order.objects.filter(project=project, expected_delivery__range=(start, end)).exclude(status='CANCELLED')
    for order in orders.select_related('supplier'):
        events.append({
            'type': 'delivery',
            'id': order.id,
            'title': f"{order.order_number} delivery ({order.supplier_display_name})",
            'date': order.expected_delivery.isoformat(),
            'status': order.status,
        })

    invoices = ClientQuote.objects.filter(project=project, valid_until__range=(start, end)).exclude(status='DRAFT')
    for invoice in invoices.prefetch_related('payments'):
        events.append({
            'type': 'invoice_due',
            'id': invoice.id,
            'title': f"{invoice.quote_number} due",
            'date': invoice.valid_until.isoformat(),
            'status': invoice.get_billing_status(today),
        })

    for update in project.updates.filter(due_date__range=(start, end)):
        events.append({
            'type': 'update',
            'id': update.id,
            'title': str(update),
            'date': update.due_date.isoformat(),
            'status': update.status,
        })

    events.sort(key=lambda event: (event['date'], event['type'], event['id']))
    return events
