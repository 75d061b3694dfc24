import os

from django.db import models
from renovo.core.models import User
from renovo.parties.models import Client


class Project(models.Model):
    """Renovation / interior-design project"""
    STATUS_CHOICES = [
        ('DRAFT', 'Draft'),
        ('IN_PROGRESS', 'In Progress'),
        ('ON_HOLD', 'On Hold'),
        ('URGENT', 'Urgent'),
        ('CANCELLED', 'Cancelled'),
        ('COMPLETED', 'Completed'),
    ]
    TYPE_CHOICES = [
        ('RESIDENTIAL', 'Residential'),
        ('COMMERCIAL', 'Commercial'),
        ('HOSPITALITY', 'Hospitality'),
    ]

    name = models.CharField(max_length=200)
    client = models.ForeignKey(Client, on_delete=models.PROTECT, null=True, blank=True, related_name='projects')
    project_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='RESIDENTIAL')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='DRAFT')
    address = models.TextField(blank=True)
    description = models.TextField(blank=True)
    budget = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    start_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='projects')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'projects'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status'], name='idx_project_status'),
        ]


class Room(models.Model):
    """Room or area within a project"""
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='rooms')
    name = models.CharField(max_length=200)
    room_type = models.CharField(max_length=50, blank=True)
    order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.project.name} - {self.name}"

    class Meta:
        db_table = 'rooms'
        ordering = ['order', 'id']


def project_document_path(instance, filename):
    return f"projects/{instance.project_id}/documents/{filename}"


class ProjectDocument(models.Model):
    """File attached to a project (drawings, contracts, spec sheets)"""
    DOCUMENT_TYPE_CHOICES = [
        ('DRAWING', 'Drawing'),
        ('CONTRACT', 'Contract'),
        ('SPEC_SHEET', 'Spec Sheet'),
        ('QUOTE', 'Quote'),
        ('INVOICE', 'Invoice'),
        ('PHOTO', 'Photo'),
        ('OTHER', 'Other'),
    ]

    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='documents')
    file = models.FileField(upload_to=project_document_path)
    name = models.CharField(max_length=255)
    document_type = models.CharField(max_length=20, choices=DOCUMENT_TYPE_CHOICES, default='OTHER')
    content_type = models.CharField(max_length=100, blank=True)
    size = models.PositiveIntegerField(default=0)
    uploaded_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='uploaded_documents')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    @property
    def extension(self):
        return os.path.splitext(self.file.name)[1].lower().lstrip('.')

    class Meta:
        db_table = 'project_documents'
        ordering = ['-created_at']
