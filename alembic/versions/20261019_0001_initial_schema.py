"""Create initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = '20261019_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

def _has_table(bind, name: str) -> bool:
    try:
        insp = inspect(bind)
        return insp.has_table(name)
    except Exception:
        return False

def upgrade() -> None:
    # ### Create all tables and ENUM types ###
    bind = op.get_bind()

    # Define ENUM types for use in table creation
    pricemodel_enum = sa.Enum('PER_PERSON', 'PER_ROOM', name='pricemodel')
    roomstatus_enum = sa.Enum('CLEAN', 'DIRTY', 'OCCUPIED', 'MAINTENANCE', name='roomstatus')
    reservationstatus_enum = sa.Enum('CONFIRMED', 'CHECKED_IN', 'CHECKED_OUT', 'CANCELLED', 'NO_SHOW', name='reservationstatus')
    holdkind_enum = sa.Enum('MANUAL', 'GROUP', 'TENTATIVE', name='holdkind')
    blocktype_enum = sa.Enum('OUT_OF_ORDER', 'OUT_OF_SERVICE', name='blocktype')
    groupstatus_enum = sa.Enum('CONFIRMED', 'CHECKED_IN', 'CHECKED_OUT', 'CANCELLED', name='groupstatus')
    paymentmode_enum = sa.Enum('ENTIRE_BILL', 'PARTIAL_BILL', 'INDIVIDUAL_BILLS', name='paymentmode')
    discounttype_enum = sa.Enum('PERCENT', 'AMOUNT', name='discounttype')
    foliostatus_enum = sa.Enum('ACTIVE', 'CLOSED', name='foliostatus')

    if not _has_table(bind, 'properties'):
        op.create_table('properties',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint('id')
        )

    if not _has_table(bind, 'room_types'):
        op.create_table('room_types',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('property_id', sa.Integer(), nullable=False),
            sa.Column('name', sa.String(length=200), nullable=False),
            sa.Column('description', sa.Text(), nullable=True),
            sa.Column('total_inventory', sa.Integer(), nullable=False),
            sa.Column('base_occupancy', sa.Integer(), nullable=False),
            sa.Column('max_occupancy', sa.Integer(), nullable=False),
            sa.Column('price_model', pricemodel_enum, nullable=False),
            sa.Column('base_rate', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('extra_guest_rate', sa.Numeric(precision=10, scale=2), nullable=False),
            sa.Column('adult_rate', sa.Numeric(precision=10, scale=2), nullable=True),
            sa.Column('child_rate', sa.Numeric(precision=10, scale=2), nullable=True),
            sa.Column('active', sa.Boolean(), server_default=sa.true(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('property_id', 'name', name='uq_room_types_property_name')
        )
        op.create_index(op.f('ix_room_types_id'), 'room_types', ['id'], unique=False)
        op.create_index(op.f('ix_room_types_property_id'), 'room_types', ['property_id'], unique=False)

    if not _has_table(bind, 'rooms'):
        op.create_table('rooms',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('property_id', sa.Integer(), nullable=False),
            sa.Column('room_type_id', sa.Integer(), nullable=False),
            sa.Column('room_number', sa.String(length=20), nullable=False),
            sa.Column('status', roomstatus_enum, server_default='CLEAN', nullable=False),
            sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
            sa.ForeignKeyConstraint(['room_type_id'], ['room_types.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_rooms_property_id'), 'rooms', ['property_id'], unique=False)
        op.create_index(op.f('ix_rooms_room_type_id'), 'rooms', ['room_type_id'], unique=False)

    if not _has_table(bind, 'reservations'):
        op.create_table('reservations',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('property_id', sa.Integer(), nullable=False),
            sa.Column('room_type_id', sa.Integer(), nullable=False),
            sa.Column('guest_name', sa.String(length=200), nullable=False),
            sa.Column('check_in', sa.Date(), nullable=False),
            sa.Column('check_out', sa.Date(), nullable=False),
            sa.Column('number_of_rooms', sa.Integer(), server_default='1', nullable=False),
            sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=True),
            sa.Column('status', reservationstatus_enum, server_default='CONFIRMED', nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
            sa.ForeignKeyConstraint(['room_type_id'], ['room_types.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_reservations_id'), 'reservations', ['id'], unique=False)
        op.create_index(op.f('ix_reservations_property_id'), 'reservations', ['property_id'], unique=False)
        op.create_index(op.f('ix_reservations_room_type_id'), 'reservations', ['room_type_id'], unique=False)
        op.create_index(op.f('ix_reservations_check_in'), 'reservations', ['check_in'], unique=False)
        op.create_index(op.f('ix_reservations_check_out'), 'reservations', ['check_out'], unique=False)
        op.create_index('ix_reservations_type_stay', 'reservations',
                        ['property_id', 'room_type_id', 'check_in', 'check_out'], unique=False)

    if not _has_table(bind, 'reservation_rooms'):
        op.create_table('reservation_rooms',
            sa.Column('reservation_id', sa.Integer(), nullable=False),
            sa.Column('room_id', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['reservation_id'], ['reservations.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ),
            sa.PrimaryKeyConstraint('reservation_id', 'room_id')
        )

    if not _has_table(bind, 'group_reservations'):
        op.create_table('group_reservations',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('property_id', sa.Integer(), nullable=False),
            sa.Column('group_code', sa.String(length=20), nullable=False),
            sa.Column('group_name', sa.String(length=200), nullable=False),
            sa.Column('contact_person', sa.String(length=200), nullable=False),
            sa.Column('contact_email', sa.String(length=255), nullable=True),
            sa.Column('contact_phone', sa.String(length=50), nullable=True),
            sa.Column('check_in', sa.Date(), nullable=False),
            sa.Column('check_out', sa.Date(), nullable=False),
            sa.Column('payment_mode', paymentmode_enum, server_default='INDIVIDUAL_BILLS', nullable=False),
            sa.Column('total_amount', sa.Numeric(precision=12, scale=2), server_default='0', nullable=False),
            sa.Column('discount_type', discounttype_enum, server_default='PERCENT', nullable=False),
            sa.Column('discount_value', sa.Numeric(precision=12, scale=2), server_default='0', nullable=False),
            sa.Column('discount_amount', sa.Numeric(precision=12, scale=2), server_default='0', nullable=False),
            sa.Column('status', groupstatus_enum, server_default='CONFIRMED', nullable=False),
            sa.Column('notes', sa.Text(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('property_id', 'group_code', name='uq_group_reservations_property_code')
        )
        op.create_index(op.f('ix_group_reservations_id'), 'group_reservations', ['id'], unique=False)
        op.create_index(op.f('ix_group_reservations_property_id'), 'group_reservations', ['property_id'], unique=False)
        op.create_index('ix_group_reservations_stay', 'group_reservations',
                        ['property_id', 'check_in', 'check_out'], unique=False)

    if not _has_table(bind, 'group_room_blocks'):
        op.create_table('group_room_blocks',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('group_id', sa.Integer(), nullable=False),
            sa.Column('position', sa.Integer(), server_default='0', nullable=False),
            sa.Column('room_type_id', sa.Integer(), nullable=False),
            sa.Column('number_of_rooms', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['group_id'], ['group_reservations.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['room_type_id'], ['room_types.id'], ),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_group_room_blocks_group_id'), 'group_room_blocks', ['group_id'], unique=False)

    if not _has_table(bind, 'group_block_rooms'):
        op.create_table('group_block_rooms',
            sa.Column('block_id', sa.Integer(), nullable=False),
            sa.Column('room_id', sa.Integer(), nullable=False),
            sa.ForeignKeyConstraint(['block_id'], ['group_room_blocks.id'], ondelete='CASCADE'),
            sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ),
            sa.PrimaryKeyConstraint('block_id', 'room_id')
        )

    if not _has_table(bind, 'inventory_holds'):
        op.create_table('inventory_holds',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('property_id', sa.Integer(), nullable=False),
            sa.Column('room_type_id', sa.Integer(), nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('blocked_inventory', sa.Integer(), server_default='0', nullable=False),
            sa.Column('kind', holdkind_enum, server_default='MANUAL', nullable=False),
            sa.Column('hold_key', sa.String(length=80), server_default='manual', nullable=False),
            sa.Column('group_id', sa.Integer(), nullable=True),
            sa.Column('block_type', blocktype_enum, server_default='OUT_OF_ORDER', nullable=False),
            sa.Column('reason', sa.String(length=200), nullable=True),
            sa.Column('created_by', sa.String(length=100), server_default='admin', nullable=False),
            sa.Column('expires_at', sa.DateTime(), nullable=True),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
            sa.ForeignKeyConstraint(['room_type_id'], ['room_types.id'], ),
            sa.ForeignKeyConstraint(['group_id'], ['group_reservations.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('property_id', 'room_type_id', 'date', 'hold_key', name='uq_inventory_holds_owner_day')
        )
        op.create_index(op.f('ix_inventory_holds_property_id'), 'inventory_holds', ['property_id'], unique=False)
        op.create_index(op.f('ix_inventory_holds_room_type_id'), 'inventory_holds', ['room_type_id'], unique=False)
        op.create_index(op.f('ix_inventory_holds_date'), 'inventory_holds', ['date'], unique=False)
        op.create_index(op.f('ix_inventory_holds_group_id'), 'inventory_holds', ['group_id'], unique=False)
        op.create_index('ix_inventory_holds_type_date', 'inventory_holds',
                        ['property_id', 'room_type_id', 'date'], unique=False)
        op.create_index('ix_inventory_holds_expires_at', 'inventory_holds', ['expires_at'], unique=False)

    if not _has_table(bind, 'manual_rates'):
        op.create_table('manual_rates',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('property_id', sa.Integer(), nullable=False),
            sa.Column('room_type_id', sa.Integer(), nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('base_rate', sa.Numeric(precision=10, scale=2), server_default='0', nullable=False),
            sa.Column('extra_guest_rate', sa.Numeric(precision=10, scale=2), server_default='0', nullable=False),
            sa.Column('adult_rate', sa.Numeric(precision=10, scale=2), server_default='0', nullable=False),
            sa.Column('child_rate', sa.Numeric(precision=10, scale=2), server_default='0', nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
            sa.ForeignKeyConstraint(['room_type_id'], ['room_types.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('property_id', 'room_type_id', 'date', name='uq_manual_rates_property_type_date')
        )
        op.create_index(op.f('ix_manual_rates_property_id'), 'manual_rates', ['property_id'], unique=False)
        op.create_index(op.f('ix_manual_rates_room_type_id'), 'manual_rates', ['room_type_id'], unique=False)
        op.create_index(op.f('ix_manual_rates_date'), 'manual_rates', ['date'], unique=False)

    if not _has_table(bind, 'dynamic_pricing_rules'):
        op.create_table('dynamic_pricing_rules',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('property_id', sa.Integer(), nullable=False),
            sa.Column('room_type_id', sa.Integer(), nullable=False),
            sa.Column('enabled', sa.Boolean(), server_default=sa.false(), nullable=False),
            sa.Column('demand_scale', sa.Float(), server_default='1', nullable=False),
            sa.Column('rate_round_off', sa.Integer(), server_default='1', nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.Column('updated_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
            sa.ForeignKeyConstraint(['room_type_id'], ['room_types.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('property_id', 'room_type_id', name='uq_dynamic_pricing_rules_property_type')
        )
        op.create_index(op.f('ix_dynamic_pricing_rules_property_id'), 'dynamic_pricing_rules', ['property_id'], unique=False)
        op.create_index(op.f('ix_dynamic_pricing_rules_room_type_id'), 'dynamic_pricing_rules', ['room_type_id'], unique=False)

    if not _has_table(bind, 'occupancy_rules'):
        op.create_table('occupancy_rules',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('rule_id', sa.Integer(), nullable=False),
            sa.Column('position', sa.Integer(), server_default='0', nullable=False),
            sa.Column('start_percent', sa.Float(), nullable=False),
            sa.Column('end_percent', sa.Float(), nullable=False),
            sa.Column('add_subtract_1', sa.Float(), server_default='0', nullable=False),
            sa.Column('multiplier', sa.Float(), server_default='1', nullable=False),
            sa.Column('add_subtract_2', sa.Float(), server_default='0', nullable=False),
            sa.Column('enabled', sa.Boolean(), server_default=sa.true(), nullable=False),
            sa.ForeignKeyConstraint(['rule_id'], ['dynamic_pricing_rules.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_occupancy_rules_rule_id'), 'occupancy_rules', ['rule_id'], unique=False)

    if not _has_table(bind, 'guest_folios'):
        op.create_table('guest_folios',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('property_id', sa.Integer(), nullable=False),
            sa.Column('folio_id', sa.String(length=20), nullable=False),
            sa.Column('group_id', sa.Integer(), nullable=True),
            sa.Column('guest_name', sa.String(length=200), nullable=False),
            sa.Column('guest_email', sa.String(length=255), nullable=True),
            sa.Column('guest_phone', sa.String(length=50), nullable=True),
            sa.Column('room_numbers', sa.JSON(), nullable=False),
            sa.Column('check_in', sa.Date(), nullable=False),
            sa.Column('check_out', sa.Date(), nullable=False),
            sa.Column('status', foliostatus_enum, server_default='ACTIVE', nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(['property_id'], ['properties.id'], ),
            sa.ForeignKeyConstraint(['group_id'], ['group_reservations.id'], ),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('property_id', 'folio_id', name='uq_guest_folios_property_folio')
        )
        op.create_index(op.f('ix_guest_folios_property_id'), 'guest_folios', ['property_id'], unique=False)
        op.create_index(op.f('ix_guest_folios_group_id'), 'guest_folios', ['group_id'], unique=False)

    if not _has_table(bind, 'folio_items'):
        op.create_table('folio_items',
            sa.Column('id', sa.Integer(), nullable=False),
            sa.Column('folio_pk', sa.Integer(), nullable=False),
            sa.Column('description', sa.String(length=300), nullable=False),
            sa.Column('date', sa.Date(), nullable=False),
            sa.Column('amount', sa.Numeric(precision=12, scale=2), nullable=False),
            sa.Column('department', sa.String(length=20), server_default='Room', nullable=False),
            sa.Column('quantity', sa.Integer(), server_default='1', nullable=False),
            sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
            sa.ForeignKeyConstraint(['folio_pk'], ['guest_folios.id'], ondelete='CASCADE'),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_folio_items_folio_pk'), 'folio_items', ['folio_pk'], unique=False)


def downgrade() -> None:
    bind = op.get_bind()
    dialect_name = bind.dialect.name
    op.drop_table('folio_items')
    op.drop_table('guest_folios')
    op.drop_table('occupancy_rules')
    op.drop_table('dynamic_pricing_rules')
    op.drop_table('manual_rates')
    op.drop_table('inventory_holds')
    op.drop_table('group_block_rooms')
    op.drop_table('group_room_blocks')
    op.drop_table('group_reservations')
    op.drop_table('reservation_rooms')
    op.drop_table('reservations')
    op.drop_table('rooms')
    op.drop_table('room_types')
    op.drop_table('properties')

    # Drop ENUM types for PostgreSQL
    if dialect_name == 'postgresql':
        for name in ('foliostatus', 'discounttype', 'paymentmode', 'groupstatus', 'blocktype',
                     'holdkind', 'reservationstatus', 'roomstatus', 'pricemodel'):
            sa.Enum(name=name).drop(bind, checkfirst=True)
