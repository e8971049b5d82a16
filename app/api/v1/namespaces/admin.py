"""Admin namespace: 后台元数据与关联候选项检索."""

from __future__ import annotations

from flask_restx import Namespace, fields

from app.admin import get_admin_config
from app.admin.associations.candidates import AssociationCandidateService
from app.api.v1.models.envelope import get_error_envelope_model, make_success_envelope_model
from app.api.v1.resources.base import BaseResource
from app.api.v1.resources.query_parsers import build_candidates_parser

ns = Namespace("admin", description="后台元数据")

ErrorEnvelope = get_error_envelope_model(ns)

AdminFieldModel = ns.model(
    "AdminField",
    {
        "name": fields.String(description="字段名", example="draft"),
        "label": fields.String(description="展示名", example="Draft"),
        "type": fields.String(description="字段类型", example="has_one_association"),
        "view_helper": fields.String(description="表单控件", example="select"),
        "input_name": fields.String(description="表单参数名", example="player[draft_id]"),
        "required": fields.Boolean(description="是否必填", example=False),
        "association": fields.Raw(required=False, description="关联描述(非关联字段为 null)"),
    },
)

AdminModelModel = ns.model(
    "AdminModel",
    {
        "name": fields.String(description="模型名", example="player"),
        "label": fields.String(description="展示名", example="Player"),
        "primary_key": fields.List(fields.String, description="主键属性", example=["id"]),
        "fields": fields.List(fields.Nested(AdminFieldModel), description="字段列表"),
    },
)

AdminModelsData = ns.model(
    "AdminModelsData",
    {"models": fields.List(fields.Nested(AdminModelModel), description="纳入管理的模型")},
)
AdminModelsSuccessEnvelope = make_success_envelope_model(ns, "AdminModelsSuccessEnvelope", AdminModelsData)

FieldTypeModel = ns.model(
    "FieldType",
    {
        "name": fields.String(description="类型名称", example="integer"),
        "parent": fields.String(required=False, description="父类型", example="numeric"),
        "lineage": fields.List(fields.String, description="继承链", example=["integer", "numeric", "string"]),
        "view_helper": fields.String(description="合并后的表单控件", example="number_field"),
    },
)

FieldTypesData = ns.model(
    "FieldTypesData",
    {"field_types": fields.List(fields.Nested(FieldTypeModel), description="已注册字段类型")},
)
FieldTypesSuccessEnvelope = make_success_envelope_model(ns, "FieldTypesSuccessEnvelope", FieldTypesData)

CandidateItemModel = ns.model(
    "AssociationCandidate",
    {
        "id": fields.String(description="目标主键(复合主键以逗号拼接)", example="1,2"),
        "label": fields.String(description="展示名", example="Fanship #1,2"),
    },
)

CandidatesData = ns.model(
    "AssociationCandidatesData",
    {
        "items": fields.List(fields.Nested(CandidateItemModel), description="候选项"),
        "total": fields.Integer(description="本次返回条数", example=1),
    },
)
CandidatesSuccessEnvelope = make_success_envelope_model(ns, "AssociationCandidatesSuccessEnvelope", CandidatesData)

_candidates_parser = build_candidates_parser()


@ns.route("/models")
class AdminModelsResource(BaseResource):
    """纳入管理的模型及字段."""

    @ns.response(200, "OK", AdminModelsSuccessEnvelope)
    @ns.response(500, "Internal Server Error", ErrorEnvelope)
    def get(self):
        """列出纳入管理的模型."""
        admin = get_admin_config()
        models = []
        for config in admin.models:
            model_fields = []
            for field in config.fields:
                association = field.association
                model_fields.append(
                    {
                        "name": field.name,
                        "label": field.label,
                        "type": field.type_name,
                        "view_helper": field.view_helper,
                        "input_name": field.input_name,
                        "required": field.required,
                        "association": None
                        if association is None
                        else {
                            "cardinality": association.cardinality.value,
                            "target": admin.config_for(association.target_model).name,
                            "foreign_key": list(association.foreign_key),
                            "primary_key": list(association.primary_key),
                            "inverse": association.inverse,
                        },
                    },
                )
            models.append(
                {
                    "name": config.name,
                    "label": config.label,
                    "primary_key": list(config.primary_key_attributes),
                    "fields": model_fields,
                },
            )
        return self.success(data={"models": models})


@ns.route("/field-types")
class FieldTypesResource(BaseResource):
    """字段类型注册表."""

    @ns.response(200, "OK", FieldTypesSuccessEnvelope)
    def get(self):
        """列出已注册的字段类型."""
        registry = get_admin_config().registry
        items = []
        for descriptor in registry:
            resolved = registry.resolve(descriptor.name)
            items.append(
                {
                    "name": descriptor.name,
                    "parent": descriptor.parent,
                    "lineage": list(resolved.lineage),
                    "view_helper": resolved.view_helper,
                },
            )
        return self.success(data={"field_types": items})


@ns.route(
    "/models/<string:model_name>/associations/<string:field_name>/candidates",
    endpoint="admin_association_candidates",
)
class AssociationCandidatesResource(BaseResource):
    """关联字段的远程候选项(自动补全)."""

    @ns.expect(_candidates_parser)
    @ns.response(200, "OK", CandidatesSuccessEnvelope)
    @ns.response(400, "Bad Request", ErrorEnvelope)
    @ns.response(404, "Not Found", ErrorEnvelope)
    def get(self, model_name: str, field_name: str):
        """按展示名检索关联目标记录."""
        args = _candidates_parser.parse_args()
        model_config = self.model_config(model_name)

        def _execute():
            items = AssociationCandidateService().list_candidates(
                model_config,
                field_name,
                query=args.get("query"),
                limit=args.get("limit"),
            )
            return self.success(data={"items": items, "total": len(items)})

        return self.safe_call(
            _execute,
            module="admin",
            action="list_association_candidates",
            public_error="获取关联候选项失败",
            context={"model": model_name, "field": field_name, "query": args.get("query")},
            commit=False,
        )
