from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from .models import Client, Supplier
from .serializers import ClientSerializer, SupplierSerializer
from renovo.core.utils import create_audit_log, paginate_queryset, parse_bool


# Client views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def client_list_create(request):
    """List all clients or create a new client"""
    if request.method == 'GET':
        queryset = Client.objects.all()

        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(company__icontains=search) |
                Q(email__icontains=search) |
                Q(phone__icontains=search)
            )
        is_active = request.query_params.get('is_active', None)
        if is_active is not None:
            queryset = queryset.filter(is_active=parse_bool(is_active))

        return Response(paginate_queryset(request, queryset.order_by('name'), ClientSerializer, default_limit=50))
    else:
        serializer = ClientSerializer(data=request.data)
        if serializer.is_valid():
            client = serializer.save(created_by=request.user)
            create_audit_log(
                request=request,
                action='create',
                model_name='Client',
                object_id=client.id,
                object_name=client.name,
                changes={'name': client.name, 'email': client.email}
            )
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def client_detail(request, pk):
    """Retrieve, update or delete a client"""
    client = get_object_or_404(Client, pk=pk)

    if request.method == 'GET':
        return Response(ClientSerializer(client).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ClientSerializer(client, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if client.projects.exists():
            return Response(
                {'error': 'Cannot delete a client that has projects. Deactivate it instead.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        create_audit_log(
            request=request,
            action='delete',
            model_name='Client',
            object_id=client.id,
            object_name=client.name
        )
        client.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Supplier views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def supplier_list_create(request):
    """Supplier phonebook: list all suppliers or create a new supplier"""
    if request.method == 'GET':
        queryset = Supplier.objects.all()

        search = request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(code__icontains=search) |
                Q(contact_name__icontains=search) |
                Q(email__icontains=search) |
                Q(phone__icontains=search)
            )
        category = request.query_params.get('category', None)
        if category:
            queryset = queryset.filter(category__iexact=category)
        is_active = request.query_params.get('is_active', None)
        if is_active is not None:
            queryset = queryset.filter(is_active=parse_bool(is_active))

        return Response(paginate_queryset(request, queryset.order_by('name'), SupplierSerializer, default_limit=50))
    else:
        serializer = SupplierSerializer(data=request.data)
        if serializer.is_valid():
            supplier = serializer.save()
            create_audit_log(
                request=request,
                action='create',
                model_name='Supplier',
                object_id=supplier.id,
                object_name=supplier.name,
                changes={'name': supplier.name, 'email': supplier.email}
            )
            return Response(serializer.data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    supplier = get_object_or_404(Supplier, pk=pk)

    if request.method == 'GET':
        return Response(SupplierSerializer(supplier).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        create_audit_log(
            request=request,
            action='delete',
            model_name='Supplier',
            object_id=supplier.id,
            object_name=supplier.name
        )
        supplier.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)
