from django.db import models
from django.utils import timezone
from renovo.core.models import User
from renovo.projects.models import Project, Room

PRIORITY_CHOICES = [
    ('URGENT', 'Urgent'),
    ('HIGH', 'High'),
    ('MEDIUM', 'Medium'),
    ('LOW', 'Low'),
    ('NORMAL', 'Normal'),
]


class ProjectUpdate(models.Model):
    """Site update posted to a project timeline (progress notes, photo surveys, issues)"""
    TYPE_CHOICES = [
        ('GENERAL', 'General'),
        ('PHOTO', 'Photo'),
        ('TASK', 'Task'),
        ('DOCUMENT', 'Document'),
        ('COMMUNICATION', 'Communication'),
        ('MILESTONE', 'Milestone'),
        ('INSPECTION', 'Inspection'),
        ('ISSUE', 'Issue'),
    ]
    CATEGORY_CHOICES = [
        ('GENERAL', 'General'),
        ('PROGRESS', 'Progress'),
        ('QUALITY', 'Quality'),
        ('SAFETY', 'Safety'),
        ('BUDGET', 'Budget'),
        ('SCHEDULE', 'Schedule'),
        ('COMMUNICATION', 'Communication'),
        ('APPROVAL', 'Approval'),
    ]
    STATUS_CHOICES = [
        ('ACTIVE', 'Active'),
        ('COMPLETED', 'Completed'),
        ('CANCELLED', 'Cancelled'),
        ('ON_HOLD', 'On Hold'),
        ('REQUIRES_ATTENTION', 'Requires Attention'),
    ]

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='updates')
    update_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='GENERAL')
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='GENERAL')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='ACTIVE')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='MEDIUM')
    title = models.CharField(max_length=255, blank=True)
    description = models.TextField(blank=True)
    room = models.ForeignKey(Room, on_delete=models.SET_NULL, null=True, blank=True, related_name='updates')
    location = models.CharField(max_length=255, blank=True)
    due_date = models.DateField(null=True, blank=True)
    estimated_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    actual_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    time_estimated = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True, help_text='Hours')
    metadata = models.JSONField(default=dict, blank=True)
    author = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='project_updates')
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title or f"{self.get_update_type_display()} update"

    class Meta:
        db_table = 'project_updates'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['project', 'update_type'], name='idx_update_project_type'),
        ]


def update_photo_path(instance, filename):
    return f"projects/{instance.update.project_id}/updates/{instance.update_id}/{filename}"


class UpdatePhoto(models.Model):
    update = models.ForeignKey(ProjectUpdate, on_delete=models.CASCADE, related_name='photos')
    image = models.ImageField(upload_to=update_photo_path, width_field='width', height_field='height')
    width = models.PositiveIntegerField(null=True, blank=True)
    height = models.PositiveIntegerField(null=True, blank=True)
    size = models.PositiveIntegerField(default=0)
    caption = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    tags = models.JSONField(default=list, blank=True)
    room = models.ForeignKey(Room, on_delete=models.SET_NULL, null=True, blank=True, related_name='photos')
    room_area = models.CharField(max_length=100, blank=True)
    trade_category = models.CharField(max_length=100, blank=True)
    is_before_photo = models.BooleanField(default=False)
    is_after_photo = models.BooleanField(default=False)
    before_after_pair = models.ForeignKey('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    taken_at = models.DateTimeField(default=timezone.now)
    uploaded_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='update_photos')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.caption or self.image.name

    class Meta:
        db_table = 'update_photos'
        ordering = ['-taken_at', '-id']


class Task(models.Model):
    """Kanban task on a project's task board"""
    STATUS_CHOICES = [
        ('TODO', 'To Do'),
        ('IN_PROGRESS', 'In Progress'),
        ('IN_REVIEW', 'In Review'),
        ('DONE', 'Done'),
        ('CANCELLED', 'Cancelled'),
    ]
    BOARD_COLUMNS = ['TODO', 'IN_PROGRESS', 'IN_REVIEW', 'DONE', 'CANCELLED']

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='tasks')
    update = models.ForeignKey(ProjectUpdate, on_delete=models.SET_NULL, null=True, blank=True, related_name='tasks')
    room = models.ForeignKey(Room, on_delete=models.SET_NULL, null=True, blank=True, related_name='tasks')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='TODO')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='MEDIUM')
    assignee = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_tasks')
    trade_type = models.CharField(max_length=100, blank=True)
    estimated_hours = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    actual_hours = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True)
    estimated_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    actual_cost = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    materials = models.JSONField(default=dict, blank=True)
    dependencies = models.ManyToManyField('self', symmetrical=False, blank=True, related_name='dependents')
    due_date = models.DateField(null=True, blank=True)
    position = models.PositiveIntegerField(default=0)
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='created_tasks')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    def is_overdue(self, today=None):
        if not self.due_date or self.status in ('DONE', 'CANCELLED'):
            return False
        return self.due_date < (today or timezone.localdate())

    class Meta:
        db_table = 'tasks'
        ordering = ['status', 'position', 'id']
        indexes = [
            models.Index(fields=['project', 'status'], name='idx_task_project_status'),
        ]
