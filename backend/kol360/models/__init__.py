from kol360.models.client import Client
from kol360.models.user import User
from kol360.models.disease_area import DiseaseArea
from kol360.models.specialty import Specialty
from kol360.models.hcp import Hcp, HcpAlias, HcpSpecialty, HcpDiseaseAreaScore
from kol360.models.question import (
    Question, SectionTemplate, SectionQuestion, SurveyTemplate, TemplateSection, SurveyQuestion,
)
from kol360.models.campaign import Campaign, CampaignHcp, CompositeScoreConfig
from kol360.models.survey_response import SurveyResponse, SurveyResponseAnswer
from kol360.models.nomination import Nomination
from kol360.models.score import HcpCampaignScore
from kol360.models.payment import Payment, PaymentStatusHistory, PaymentExportBatch, PaymentImportBatch
from kol360.models.opt_out import OptOut
from kol360.models.audit_log import AuditLog
from kol360.models.system_setting import SystemSetting

__all__ = ["Client", "User", "DiseaseArea", "Specialty", "Hcp", "HcpAlias", "HcpSpecialty",
           "HcpDiseaseAreaScore", "Question", "SectionTemplate", "SectionQuestion", "SurveyTemplate",
           "TemplateSection", "SurveyQuestion", "Campaign", "CampaignHcp", "CompositeScoreConfig",
           "SurveyResponse", "SurveyResponseAnswer", "Nomination", "HcpCampaignScore", "Payment",
           "PaymentStatusHistory", "PaymentExportBatch", "PaymentImportBatch", "OptOut", "AuditLog",
           "SystemSetting"]
